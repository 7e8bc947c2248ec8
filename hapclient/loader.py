"""
Lookup of HAP service and characteristic types.

The tables are generated offline by ``scripts/gen_hap_types.py`` and map
a type name to its UUID. Bridges report types either in the short
(``"3E"``) or the long UUID form, both resolve to the same name here.
Types that are not in the tables are unknown and the aggregator
skips them.
"""
import json
import logging
from typing import Dict, Optional

from hapclient import CHARACTERISTICS_FILE, SERVICES_FILE
from hapclient.util import normalize_hap_type

_registry = None
logger = logging.getLogger(__name__)


class TypeRegistry:
    """Bidirectional mapping between HAP type UUIDs and names.

    .. seealso:: hapclient/resources/services.json
    .. seealso:: hapclient/resources/characteristics.json
    """

    __slots__ = ("_serv_names", "_serv_uuids", "_char_names", "_char_uuids")

    def __init__(self, path_char=CHARACTERISTICS_FILE, path_service=SERVICES_FILE):
        """Initialize a new TypeRegistry instance."""
        self._load(self._read_file(path_char), self._read_file(path_service))

    @staticmethod
    def _read_file(path):
        """Read file and return a dict."""
        with open(path, "r", encoding="utf8") as file:
            return json.load(file)

    def _load(self, char_dict, serv_dict):
        self._char_uuids, self._char_names = self._build_maps(char_dict)
        self._serv_uuids, self._serv_names = self._build_maps(serv_dict)

    @staticmethod
    def _build_maps(type_dict):
        """Return the (name -> uuid, uuid -> name) pair for a type table."""
        uuids: Dict[str, str] = {}
        names: Dict[str, str] = {}
        for name, info in type_dict.items():
            uuid = normalize_hap_type(info.get("UUID")) if info else None
            if uuid is None:
                raise KeyError("Could not load type {}!".format(name))
            uuids[name] = uuid
            names[uuid] = name
        return uuids, names

    def service_name(self, hap_type) -> Optional[str]:
        """Return the name of a service type or None if it is unknown."""
        return self._serv_names.get(normalize_hap_type(hap_type))

    def service_uuid(self, name: str) -> Optional[str]:
        """Return the long UUID of a service name or None if it is unknown."""
        return self._serv_uuids.get(name)

    def char_name(self, hap_type) -> Optional[str]:
        """Return the name of a characteristic type or None if it is unknown."""
        return self._char_names.get(normalize_hap_type(hap_type))

    def char_uuid(self, name: str) -> Optional[str]:
        """Return the long UUID of a characteristic name or None if it is unknown."""
        return self._char_uuids.get(name)

    @property
    def service_names(self):
        return list(self._serv_uuids)

    @property
    def char_names(self):
        return list(self._char_uuids)

    @classmethod
    def from_dict(cls, char_dict=None, serv_dict=None):
        """Create a new instance directly from json dicts."""
        registry = cls.__new__(cls)
        registry._load(char_dict or {}, serv_dict or {})
        return registry


def get_registry():
    """Get the type registry.

    If already initialized it returns the existing one.
    """
    # pylint: disable=global-statement
    global _registry
    if _registry is None:
        _registry = TypeRegistry()
        logger.debug(
            "Loaded %d service and %d characteristic types",
            len(_registry.service_names),
            len(_registry.char_names),
        )
    return _registry
