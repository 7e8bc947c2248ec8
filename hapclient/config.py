"""Module for `Config` class."""
import logging

logger = logging.getLogger(__name__)


class Config:
    """Class to store the user options of a client.

    That is whether discovery and I/O should log debug messages and which
    instances must never be added to the pool.
    """

    __slots__ = ("debug", "instance_blacklist")

    def __init__(self, *, debug=False, instance_blacklist=None):
        """Initialize a new object.

        Must be called with keyword arguments.
        """
        self.debug = bool(debug)
        self.instance_blacklist = [
            str(identity) for identity in (instance_blacklist or [])
        ]

    def __repr__(self):
        return "<config debug={} instance_blacklist={}>".format(
            self.debug, self.instance_blacklist
        )

    def is_blacklisted(self, identity):
        """Return whether the identity is blacklisted, ignoring case."""
        identity = identity.lower()
        return any(entry.lower() == identity for entry in self.instance_blacklist)

    @classmethod
    def from_dict(cls, config_dict):
        """Initialize a config from a dict.

        Both the camel case keys of the bridge configuration (``debug``,
        ``instanceBlacklist``) and their snake case forms are accepted.
        """
        if config_dict is None:
            return cls()
        if isinstance(config_dict, cls):
            return config_dict
        if not hasattr(config_dict, "get"):
            raise TypeError(
                "Expected a mapping or Config, got {}".format(type(config_dict))
            )
        blacklist = config_dict.get("instanceBlacklist")
        if blacklist is None:
            blacklist = config_dict.get("instance_blacklist")
        if isinstance(blacklist, str):
            raise TypeError("instanceBlacklist must be a list of identities")
        config = cls(debug=config_dict.get("debug", False), instance_blacklist=blacklist)
        logger.debug("Using %s", config)
        return config
