"""
All things for a HAP characteristic as seen by a client.

A characteristic is the smallest unit of the smart home, e.g.
a temperature measuring or a device status. Here it is plain data
flattened out of an instance's accessory tree, reads and writes go
through :class:`hapclient.client.HapClient`.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from .const import (
    HAP_PERMISSION_NOTIFY,
    HAP_PERMISSION_READ,
    HAP_PERMISSION_WRITE,
    HAP_REPR_DESC,
    HAP_REPR_FORMAT,
    HAP_REPR_IID,
    HAP_REPR_MAX_VALUE,
    HAP_REPR_MIN_STEP,
    HAP_REPR_MIN_VALUE,
    HAP_REPR_PERM,
    HAP_REPR_TYPE,
    HAP_REPR_UNIT,
    HAP_REPR_VALUE,
)
from .util import normalize_hap_type

logger = logging.getLogger(__name__)

# ### HAP Format ###
HAP_FORMAT_BOOL = "bool"
HAP_FORMAT_INT = "int"
HAP_FORMAT_FLOAT = "float"
HAP_FORMAT_STRING = "string"
HAP_FORMAT_ARRAY = "array"
HAP_FORMAT_DICTIONARY = "dictionary"
HAP_FORMAT_UINT8 = "uint8"
HAP_FORMAT_UINT16 = "uint16"
HAP_FORMAT_UINT32 = "uint32"
HAP_FORMAT_UINT64 = "uint64"
HAP_FORMAT_DATA = "data"
HAP_FORMAT_TLV8 = "tlv8"

HAP_FORMAT_INTEGERS = {
    HAP_FORMAT_INT,
    HAP_FORMAT_UINT8,
    HAP_FORMAT_UINT16,
    HAP_FORMAT_UINT32,
    HAP_FORMAT_UINT64,
}

CharValue = Union[bool, int, float, str, None]


def coerce_value(prop_format: Optional[str], value: Any) -> CharValue:
    """Interpret a raw json value according to the characteristic format.

    Bridges are not strict about types, e.g. a ``bool`` characteristic may
    report ``1``. Values that can not be interpreted are returned as is.
    """
    if value is None:
        return None
    try:
        if prop_format == HAP_FORMAT_BOOL:
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true")
            return bool(value)
        if prop_format in HAP_FORMAT_INTEGERS:
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, (int, float, str)):
                return int(float(value))
        if prop_format == HAP_FORMAT_FLOAT:
            if isinstance(value, (int, float, str)) and not isinstance(value, bool):
                return float(value)
        if prop_format == HAP_FORMAT_STRING:
            return str(value)
    except (ValueError, OverflowError):
        logger.debug("Could not interpret %r as %s", value, prop_format)
    return value


class CharacteristicRecord:
    """A flattened characteristic of one accessory of an instance.

    ``aid`` and ``iid`` together address the characteristic on its instance.
    """

    __slots__ = (
        "aid",
        "iid",
        "type_id",
        "type",
        "service_type",
        "service_name",
        "description",
        "value",
        "format",
        "perms",
        "unit",
        "min_value",
        "max_value",
        "min_step",
    )

    def __init__(
        self,
        aid: int,
        iid: int,
        type_id: str,
        type_name: str,
        *,
        service_type: Optional[str] = None,
        service_name: Optional[str] = None,
        description: Optional[str] = None,
        value: CharValue = None,
        prop_format: Optional[str] = None,
        perms: Optional[List[str]] = None,
        unit: Optional[str] = None,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        min_step: Optional[float] = None,
    ) -> None:
        self.aid = aid
        self.iid = iid
        self.type_id = type_id
        self.type = type_name
        self.service_type = service_type
        self.service_name = service_name
        self.description = description
        self.format = prop_format
        self.value = coerce_value(prop_format, value)
        self.perms: List[str] = list(perms or [])
        self.unit = unit
        self.min_value = min_value
        self.max_value = max_value
        self.min_step = min_step

    def __repr__(self) -> str:
        """Return the representation of the characteristic."""
        return (
            f"<characteristic type={self.type} aid={self.aid} iid={self.iid} "
            f"value={self.value} perms={self.perms}>"
        )

    @property
    def can_read(self) -> bool:
        return HAP_PERMISSION_READ in self.perms

    @property
    def can_write(self) -> bool:
        return HAP_PERMISSION_WRITE in self.perms

    @property
    def ev(self) -> bool:
        """Whether the characteristic can send events."""
        return HAP_PERMISSION_NOTIFY in self.perms

    def update_value(self, value: Any) -> CharValue:
        """Store a value read from the instance and return it."""
        self.value = coerce_value(self.format, value)
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """Return the record as a dict, e.g. for json output."""
        return {
            "aid": self.aid,
            "iid": self.iid,
            "uuid": self.type_id,
            "type": self.type,
            "serviceType": self.service_type,
            "serviceName": self.service_name,
            "description": self.description,
            "value": self.value,
            "format": self.format,
            "perms": self.perms,
            "unit": self.unit,
            "maxValue": self.max_value,
            "minValue": self.min_value,
            "minStep": self.min_step,
            "canRead": self.can_read,
            "canWrite": self.can_write,
            "ev": self.ev,
        }

    @classmethod
    def from_HAP(  # pylint: disable=invalid-name
        cls,
        aid: int,
        hap_rep: Dict[str, Any],
        type_name: str,
        service_type: Optional[str] = None,
        service_name: Optional[str] = None,
    ) -> "CharacteristicRecord":
        """Initialize a record from the HAP representation of a characteristic.

        :param hap_rep: One entry of the ``characteristics`` list of a service
            in the ``/accessories`` response.
        :type hap_rep: dict
        """
        return cls(
            aid,
            hap_rep[HAP_REPR_IID],
            normalize_hap_type(hap_rep.get(HAP_REPR_TYPE)),
            type_name,
            service_type=service_type,
            service_name=service_name,
            description=hap_rep.get(HAP_REPR_DESC),
            value=hap_rep.get(HAP_REPR_VALUE),
            prop_format=hap_rep.get(HAP_REPR_FORMAT),
            perms=hap_rep.get(HAP_REPR_PERM),
            unit=hap_rep.get(HAP_REPR_UNIT),
            min_value=hap_rep.get(HAP_REPR_MIN_VALUE),
            max_value=hap_rep.get(HAP_REPR_MAX_VALUE),
            min_step=hap_rep.get(HAP_REPR_MIN_STEP),
        )
