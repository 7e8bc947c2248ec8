"""The hand over point to a characteristic event monitor.

The client passes its pin and a freshly aggregated service list to a
monitor. The event channel itself is a separate streaming protocol and is
left to subclasses, this base class only prepares what every monitor
needs: the services grouped per instance and the subscription request
for the characteristics that can send events.
"""
import logging
from typing import Any, Dict, List

from .const import HAP_PERMISSION_NOTIFY, HAP_REPR_AID, HAP_REPR_CHARS, HAP_REPR_IID
from .instance import Instance
from .service import ServiceRecord

logger = logging.getLogger(__name__)


class HapMonitor:
    """Base class for monitors of characteristic changes.

    :param pin: The pin used to authorize against the instances.
    :type pin: str

    :param services: Services returned by an aggregation sweep.
    :type services: list<ServiceRecord>
    """

    def __init__(self, pin: str, services: List[ServiceRecord]) -> None:
        self.pin = pin
        self.services = services
        self.instances: Dict[str, Instance] = {}
        self.services_by_instance: Dict[str, List[ServiceRecord]] = {}
        for service in services:
            identity = service.instance.identity
            self.instances.setdefault(identity, service.instance)
            self.services_by_instance.setdefault(identity, []).append(service)

    def __repr__(self):
        return "<{} instances={} services={}>".format(
            type(self).__name__, list(self.instances), len(self.services)
        )

    def subscription_request(self, identity: str) -> Dict[str, Any]:
        """Return the body that subscribes to events of one instance.

        :return: For example:

        .. code-block:: python

           {
              "characteristics": [{
                 "aid": 2,
                 "iid": 10,
                 "ev": True
              }]
           }

        :rtype: dict
        """
        chars = [
            {HAP_REPR_AID: char.aid, HAP_REPR_IID: char.iid, HAP_PERMISSION_NOTIFY: True}
            for service in self.services_by_instance.get(identity, [])
            for char in service.characteristics
            if char.ev
        ]
        return {HAP_REPR_CHARS: chars}

    def find_service(self, identity: str, aid: int, iid: int):
        """Return the service of an instance that owns characteristic aid.iid."""
        for service in self.services_by_instance.get(identity, []):
            if service.get_characteristic(iid) is not None and service.aid == aid:
                return service
        return None

    def apply_event(self, identity: str, aid: int, iid: int, value) -> bool:
        """Store a value received from an event channel.

        :return: Whether a known characteristic was updated.
        :rtype: bool
        """
        service = self.find_service(identity, aid, iid)
        if service is None:
            logger.debug("Event for unknown characteristic %s.%s of %s", aid, iid, identity)
            return False
        char = service.get_characteristic(iid)
        char.update_value(value)
        service.values[char.type] = char.value
        return True

    async def async_start(self) -> None:
        """Open the event channels. Implemented by subclasses."""
        raise NotImplementedError

    async def async_stop(self) -> None:
        """Close the event channels. Implemented by subclasses."""
        raise NotImplementedError
