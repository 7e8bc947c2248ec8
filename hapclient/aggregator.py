"""Aggregator - collects the services of every instance in the pool.

A sweep fetches ``/accessories`` from one instance after the other and
flattens each accessory tree into ServiceRecords:

- the AccessoryInformation service becomes the ``accessory_information``
  of every other service of the same accessory,
- services and characteristics with a type unknown to the registry are
  dropped, as is the Name characteristic,
- the service name is taken from the Name characteristic or made up from
  the service type.

An instance that fails during a sweep is counted against its health in
the pool and the sweep goes on with the next one. A successful fetch
resets that count. Nothing is cached, each call fetches everything
again.
"""
import logging
from typing import Any, Dict, List, Optional

from .characteristic import CharacteristicRecord
from .config import Config
from .const import (
    CHAR_NAME,
    HAP_REPR_AID,
    HAP_REPR_CHARS,
    HAP_REPR_DESC,
    HAP_REPR_IID,
    HAP_REPR_LINKED,
    HAP_REPR_SERVICES,
    HAP_REPR_TYPE,
    HAP_REPR_VALUE,
    SERVICE_ACCESSORY_INFORMATION,
)
from .hap_http import HAP_REQUEST_ERRORS, HAPHttpClient
from .instance import Instance, InstancePool
from .loader import TypeRegistry, get_registry
from .service import ServiceRecord
from .util import humanize, normalize_hap_type

logger = logging.getLogger(__name__)

# A malformed accessory tree fails the instance like a bad response does.
PARSE_ERRORS = (KeyError, TypeError, AttributeError)


class Aggregator:
    """Builds the flat list of services across all pooled instances."""

    def __init__(
        self,
        pool: InstancePool,
        http: HAPHttpClient,
        *,
        registry: Optional[TypeRegistry] = None,
        config: Optional[Config] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.pool = pool
        self.http = http
        self.registry = registry or get_registry()
        self.config = config or Config()
        self.logger = log or logger

    def _debug(self, msg, *args):
        if self.config.debug:
            self.logger.debug(msg, *args)

    async def async_get_all_services(self) -> List[ServiceRecord]:
        """Fetch and flatten the accessories of every instance.

        Instances are fetched sequentially. The returned list is new for
        every call, so concurrent sweeps do not share records.
        """
        instances = self.pool.list()
        if not instances:
            self._debug(
                "[HapClient] Cannot load accessories. No instances have been discovered."
            )
            return []

        services: List[ServiceRecord] = []
        for instance in instances:
            try:
                accessories = await self.http.async_get_accessories(instance)
                services.extend(self.parse_accessories(instance, accessories))
            except HAP_REQUEST_ERRORS + PARSE_ERRORS as err:
                self.logger.error("[HapClient] %s Failed to connect: %r", instance, err)
                self.pool.record_failure(instance.identity, instance.address)
            else:
                self.pool.record_success(instance.identity, instance.address)
        return services

    def parse_accessories(
        self, instance: Instance, accessories: List[Dict[str, Any]]
    ) -> List[ServiceRecord]:
        """Flatten the ``accessories`` list of one instance."""
        services: List[ServiceRecord] = []
        for accessory in accessories:
            aid = accessory[HAP_REPR_AID]
            hap_services = accessory.get(HAP_REPR_SERVICES) or []
            info = self._accessory_information(hap_services)
            for hap_service in hap_services:
                service = self._parse_service(instance, aid, hap_service, info)
                if service is not None:
                    services.append(service)
        return services

    def _accessory_information(self, hap_services) -> Dict[str, Any]:
        """Return description -> value of the AccessoryInformation service."""
        info: Dict[str, Any] = {}
        for hap_service in hap_services:
            type_name = self.registry.service_name(hap_service.get(HAP_REPR_TYPE))
            if type_name != SERVICE_ACCESSORY_INFORMATION:
                continue
            for hap_char in hap_service.get(HAP_REPR_CHARS) or []:
                if hap_char.get(HAP_REPR_VALUE):
                    info[hap_char.get(HAP_REPR_DESC)] = hap_char[HAP_REPR_VALUE]
        return info

    def _service_name(self, type_name: str, hap_chars) -> str:
        for hap_char in hap_chars:
            if self.registry.char_name(hap_char.get(HAP_REPR_TYPE)) != CHAR_NAME:
                continue
            value = hap_char.get(HAP_REPR_VALUE)
            if value is not None and value != "":
                return str(value)
        return humanize(type_name)

    def _parse_service(
        self, instance: Instance, aid: int, hap_service, info: Dict[str, Any]
    ) -> Optional[ServiceRecord]:
        type_name = self.registry.service_name(hap_service.get(HAP_REPR_TYPE))
        if type_name is None or type_name == SERVICE_ACCESSORY_INFORMATION:
            return None

        hap_chars = hap_service.get(HAP_REPR_CHARS) or []
        service_name = self._service_name(type_name, hap_chars)

        chars: List[CharacteristicRecord] = []
        for hap_char in hap_chars:
            char_name = self.registry.char_name(hap_char.get(HAP_REPR_TYPE))
            if char_name is None or char_name == CHAR_NAME:
                continue
            chars.append(
                CharacteristicRecord.from_HAP(
                    aid, hap_char, char_name, type_name, service_name
                )
            )

        return ServiceRecord(
            instance,
            aid,
            hap_service[HAP_REPR_IID],
            normalize_hap_type(hap_service[HAP_REPR_TYPE]),
            type_name,
            humanize(type_name),
            service_name,
            characteristics=chars,
            accessory_information=info,
            linked=hap_service.get(HAP_REPR_LINKED),
        )
