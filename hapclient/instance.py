"""This module implements the pool of discovered HAP instances."""
import logging
from typing import Dict, Iterator, List, Optional

from .const import INSTANCE_FAILURE_THRESHOLD

logger = logging.getLogger(__name__)


class Instance:
    """A bridge that exposes the accessory API on the local network.

    The ``identity`` is the ``id`` advertised in the mDNS TXT record and
    stays the same across discovery rounds.
    """

    __slots__ = ("identity", "display_name", "address", "port", "consecutive_failures")

    def __init__(
        self,
        identity: str,
        display_name: Optional[str],
        address: Optional[str],
        port: int,
        consecutive_failures: int = 0,
    ) -> None:
        self.identity = identity
        self.display_name = display_name
        self.address = address
        self.port = port
        self.consecutive_failures = consecutive_failures

    def __repr__(self):
        """Return the representation of the instance."""
        return "<instance identity={} display_name={} address={}:{} failures={}>".format(
            self.identity,
            self.display_name,
            self.address,
            self.port,
            self.consecutive_failures,
        )

    def __str__(self):
        return "[{}:{} ({})]".format(self.address, self.port, self.identity)

    def url(self, path: str) -> str:
        """Return the url of the given path on this instance."""
        return "http://{}:{}{}".format(self.address, self.port, path)


class InstancePool:
    """In memory directory of reachable instances, keyed by identity.

    Iteration order is the order in which instances were first added.
    """

    def __init__(self, failure_threshold: int = INSTANCE_FAILURE_THRESHOLD) -> None:
        self.failure_threshold = failure_threshold
        self._instances: Dict[str, Instance] = {}

    def __contains__(self, identity) -> bool:
        return identity in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[Instance]:
        return iter(self.list())

    def get(self, identity: str) -> Optional[Instance]:
        """Return the instance with the given identity, if known."""
        return self._instances.get(identity)

    def list(self) -> List[Instance]:
        """Return a snapshot of the current instances."""
        return list(self._instances.values())

    def upsert(self, instance: Instance) -> bool:
        """Insert a new instance or merge a rediscovered one.

        A known instance only gets its ``display_name`` and ``port`` updated,
        the probed address and the failure counter are kept.

        :return: Whether the pool changed.
        :rtype: bool
        """
        existing = self._instances.get(instance.identity)
        if existing is None:
            self._instances[instance.identity] = instance
            return True

        if (
            existing.port == instance.port
            and existing.display_name == instance.display_name
        ):
            return False

        existing.port = instance.port
        existing.display_name = instance.display_name
        return True

    def record_success(self, identity: str, address: Optional[str]) -> None:
        """Reset the failure counter after a successful fetch."""
        instance = self._instances.get(identity)
        if instance is not None and instance.address == address:
            instance.consecutive_failures = 0

    def record_failure(self, identity: str, address: Optional[str]) -> bool:
        """Count a failed fetch against an instance.

        The instance is evicted once its counter exceeds the threshold, so
        only failures in a row since the last success count.

        :return: Whether the instance was evicted.
        :rtype: bool
        """
        instance = self._instances.get(identity)
        if instance is None or instance.address != address:
            # Evicted or replaced by an overlapping sweep.
            return False

        instance.consecutive_failures += 1
        if instance.consecutive_failures <= self.failure_threshold:
            return False

        del self._instances[identity]
        logger.warning("[HapClient] %s Removed From Instance Pool", instance)
        return True
