"""This module implements the client side HAP Service record."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .characteristic import CharacteristicRecord, CharValue
from .util import service_unique_id

if TYPE_CHECKING:
    from .instance import Instance


class ServiceRecord:
    """A representation of a HAP service of an accessory on some instance.

    A ServiceRecord contains the visible characteristics of the service. For
    example, a TemperatureSensor service has the characteristic
    CurrentTemperature. The record is plain data, reads and writes go
    through the client.
    """

    __slots__ = (
        "aid",
        "iid",
        "type_id",
        "type",
        "human_type",
        "service_name",
        "characteristics",
        "accessory_information",
        "values",
        "linked",
        "instance",
        "unique_id",
    )

    def __init__(
        self,
        instance: "Instance",
        aid: int,
        iid: int,
        type_id: str,
        type_name: str,
        human_type: str,
        service_name: str,
        characteristics: Optional[List[CharacteristicRecord]] = None,
        accessory_information: Optional[Dict[str, Any]] = None,
        linked: Optional[List[int]] = None,
    ) -> None:
        """Initialize a new ServiceRecord object."""
        self.instance = instance
        self.aid = aid
        self.iid = iid
        self.type_id = type_id
        self.type = type_name
        self.human_type = human_type
        self.service_name = service_name
        self.characteristics: List[CharacteristicRecord] = list(characteristics or [])
        self.accessory_information: Dict[str, Any] = dict(accessory_information or {})
        self.linked: List[int] = list(linked or [])
        self.values: Dict[str, CharValue] = {}
        self.update_values()
        self.unique_id = service_unique_id(instance.identity, aid, iid, type_id)

    def __repr__(self):
        """Return the representation of the service."""
        return f"<service service_name={self.service_name} unique_id={self.unique_id} values={self.values}>"

    def update_values(self) -> None:
        """Rebuild ``values`` from the characteristics."""
        self.values = {char.type: char.value for char in self.characteristics}

    def get_characteristic(self, iid: int) -> Optional[CharacteristicRecord]:
        """Return the characteristic with the given iid, if this service has it."""
        for char in self.characteristics:
            if char.iid == iid and char.aid == self.aid:
                return char
        return None

    def get_characteristic_by_type(self, type_name: str) -> Optional[CharacteristicRecord]:
        """Return the characteristic of the given type name, e.g. ``On``."""
        for char in self.characteristics:
            if char.type == type_name:
                return char
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return the record as a dict, e.g. for json output."""
        return {
            "aid": self.aid,
            "iid": self.iid,
            "uuid": self.type_id,
            "type": self.type,
            "humanType": self.human_type,
            "serviceName": self.service_name,
            "serviceCharacteristics": [c.to_dict() for c in self.characteristics],
            "accessoryInformation": self.accessory_information,
            "values": self.values,
            "linked": self.linked,
            "instance": {
                "name": self.instance.display_name,
                "username": self.instance.identity,
                "ipAddress": self.instance.address,
                "port": self.instance.port,
            },
            "uniqueId": self.unique_id,
        }
