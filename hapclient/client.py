"""HapClient - glues together discovery, the instance pool and the aggregator.

Typical use, from within a running event loop:

.. code-block:: python

   async with HapClient("031-45-154", config={"debug": True}) as client:
       client.add_listener(lambda instance: print("found", instance))
       await asyncio.sleep(5)
       services = await client.async_get_all_services()
       switch = next(s for s in services if s.type == "Switch")
       await client.async_set_characteristic(
           switch, switch.get_characteristic_by_type("On").iid, True
       )

Reading and writing never raises for network problems. Failures are
logged and the methods return ``None`` (or the unchanged service for
``async_refresh_service``), so callers check the result and retry when
they want to.
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional

import aiohttp
from zeroconf.asyncio import AsyncZeroconf

from . import util
from .aggregator import PARSE_ERRORS, Aggregator
from .characteristic import CharacteristicRecord
from .config import Config
from .const import (
    DISCOVERY_WINDOW,
    HAP_REPR_AID,
    HAP_REPR_IID,
    HAP_REPR_STATUS,
    HAP_REPR_VALUE,
    HTTP_UNAUTHORIZED,
)
from .discovery import DiscoveryEngine
from .hap_http import HAP_REQUEST_ERRORS, HAPHttpClient, HAPResponseError
from .instance import Instance, InstancePool
from .loader import TypeRegistry, get_registry
from .monitor import HapMonitor
from .service import ServiceRecord

logger = logging.getLogger(__name__)

READ_ERRORS = HAP_REQUEST_ERRORS + PARSE_ERRORS + (IndexError,)


class HapClient:
    """
    A HapClient finds HAP instances on the network and gives access to their
    services and characteristics.

    The client owns its zeroconf session (unless one is passed in) and its
    HTTP session (unless one is passed in), both are released by
    ``async_stop``.
    """

    def __init__(
        self,
        pin: str,
        *,
        logger: Optional[logging.Logger] = None,  # pylint: disable=redefined-outer-name
        config=None,
        async_zeroconf_instance: Optional[AsyncZeroconf] = None,
        session: Optional[aiohttp.ClientSession] = None,
        registry: Optional[TypeRegistry] = None,
        monitor_factory: Callable[[str, List[ServiceRecord]], Any] = HapMonitor,
        discovery_window: float = DISCOVERY_WINDOW,
    ) -> None:
        """
        Initialize a new HapClient object.

        :param pin: The pin of the instances, sent as the authorization of
            every write. It has the format "xxx-xx-xxx".
        :type pin: str

        :param logger: Logger to use instead of the module logger.
        :type logger: logging.Logger

        :param config: A Config or a dict with the keys ``debug`` and
            ``instanceBlacklist``.
        :type config: Config or dict

        :param async_zeroconf_instance: An AsyncZeroconf instance to browse
            with. It is not closed by the client.

        :param session: An aiohttp session for all requests. It is not
            closed by the client.

        :param monitor_factory: Called with the pin and a service list by
            ``async_monitor_characteristics``.
        """
        if not pin or not isinstance(pin, str):
            raise ValueError("A pin is required to talk to HAP instances.")
        self.pin = pin
        self.logger = logger or logging.getLogger(__name__)
        self.config = Config.from_dict(config)
        self.registry = registry or get_registry()
        self.monitor_factory = monitor_factory

        self.pool = InstancePool()
        self.http = HAPHttpClient(session)
        self._owns_session = session is None
        self._listeners: List[Callable[[Instance], Any]] = []
        self._listener_tasks = set()

        self.discovery = DiscoveryEngine(
            self.pool,
            self.http,
            config=self.config,
            on_discovered=self._instance_discovered,
            async_zeroconf_instance=async_zeroconf_instance,
            discovery_window=discovery_window,
            log=self.logger,
        )
        self.aggregator = Aggregator(
            self.pool,
            self.http,
            registry=self.registry,
            config=self.config,
            log=self.logger,
        )

    def _debug(self, msg, *args):
        if self.config.debug:
            self.logger.debug(msg, *args)

    async def __aenter__(self) -> "HapClient":
        await self.async_start()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.async_stop()

    def _ensure_session(self) -> None:
        """Create the HTTP session on first use, inside the event loop."""
        if self.http.session is None:
            self.http.session = aiohttp.ClientSession()

    async def async_start(self) -> None:
        """Open the HTTP session and start discovering instances."""
        self._ensure_session()
        await self.discovery.async_start_discovery()

    async def async_stop(self) -> None:
        """Stop discovery and release the sessions owned by the client."""
        await self.discovery.async_stop()
        for task in list(self._listener_tasks):
            task.cancel()
        if self._owns_session and self.http.session is not None:
            await self.http.session.close()
            self.http.session = None
        self._debug("[HapClient] Stopped")

    # ### Discovery ###
    def add_listener(self, listener: Callable[[Instance], Any]) -> Callable[[], None]:
        """Call ``listener(instance)`` for every discovered or updated instance.

        Listeners are called in the order instances are discovered.
        Coroutine functions are scheduled as tasks in that same order.

        :return: A function that removes the listener again.
        """
        self._listeners.append(listener)

        def remove_listener():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def _instance_discovered(self, instance: Instance) -> None:
        for listener in list(self._listeners):
            if util.iscoro(listener):
                task = asyncio.ensure_future(self._async_call_listener(listener, instance))
                self._listener_tasks.add(task)
                task.add_done_callback(self._listener_tasks.discard)
                continue
            try:
                listener(instance)
            except Exception:  # pylint: disable=broad-except
                self.logger.exception("[HapClient] Error in listener for %s", instance)

    async def _async_call_listener(self, listener, instance: Instance) -> None:
        try:
            await listener(instance)
        except Exception:  # pylint: disable=broad-except
            self.logger.exception("[HapClient] Error in listener for %s", instance)

    def refresh_instances(self) -> asyncio.Future:
        """Start or repeat discovery. Must be called from the event loop."""
        return asyncio.ensure_future(self.async_refresh_instances())

    async def async_refresh_instances(self) -> None:
        """Start a discovery round, or query again if one is running."""
        self._ensure_session()
        await self.discovery.async_start_discovery()

    @property
    def instances(self) -> List[Instance]:
        return self.pool.list()

    # ### Services ###
    async def async_get_all_services(self) -> List[ServiceRecord]:
        """Fetch the services of all instances, see ``Aggregator``."""
        self._ensure_session()
        return await self.aggregator.async_get_all_services()

    async def async_get_service(self, iid: int) -> Optional[ServiceRecord]:
        """Return the first service with the given iid."""
        services = await self.async_get_all_services()
        return next((s for s in services if s.iid == iid), None)

    async def async_get_service_by_name(self, service_name: str) -> Optional[ServiceRecord]:
        """Return the first service with the given name."""
        services = await self.async_get_all_services()
        return next((s for s in services if s.service_name == service_name), None)

    async def async_monitor_characteristics(self):
        """Hand a fresh service list to a new monitor and return the monitor."""
        services = await self.async_get_all_services()
        return self.monitor_factory(self.pin, services)

    # ### Characteristics ###
    @staticmethod
    def get_characteristic_by_type(
        service: ServiceRecord, type_name: str
    ) -> Optional[CharacteristicRecord]:
        """Return a characteristic of the service by its type name, e.g. ``On``."""
        return service.get_characteristic_by_type(type_name)

    async def async_refresh_service(self, service: ServiceRecord) -> ServiceRecord:
        """Read all characteristics of a service in one request.

        The records of the service are updated in place. On failure the
        error is logged and ``values`` still mirrors the records, some of
        which may have been updated before the failure.
        """
        char_ids = [util.char_query_id(service.aid, c.iid) for c in service.characteristics]
        if not char_ids:
            return service
        self._ensure_session()
        try:
            hap_chars = await self.http.async_get_characteristics(service.instance, char_ids)
            for hap_char in hap_chars:
                if hap_char.get(HAP_REPR_AID) != service.aid or HAP_REPR_VALUE not in hap_char:
                    continue
                char = service.get_characteristic(hap_char[HAP_REPR_IID])
                if char is not None:
                    char.update_value(hap_char[HAP_REPR_VALUE])
        except READ_ERRORS as err:
            self.logger.error(
                "[HapClient] %s Failed to refresh characteristics for %s: %r",
                service.instance,
                service.service_name,
                err,
            )
        finally:
            service.update_values()
        return service

    async def async_get_characteristic(
        self, service: ServiceRecord, iid: int
    ) -> Optional[CharacteristicRecord]:
        """Read one characteristic of a service.

        :return: The updated characteristic or None if the read failed.
        """
        self._ensure_session()
        try:
            hap_chars = await self.http.async_get_characteristics(
                service.instance, [util.char_query_id(service.aid, iid)]
            )
            hap_char = hap_chars[0]
            char = service.get_characteristic(hap_char[HAP_REPR_IID])
            if char is None:
                raise KeyError("iid {} is not part of the service".format(iid))
            if hap_char.get(HAP_REPR_STATUS, 0) != 0:
                raise HAPResponseError(207, "status {}".format(hap_char[HAP_REPR_STATUS]))
            char.update_value(hap_char.get(HAP_REPR_VALUE))
        except READ_ERRORS as err:
            self.logger.error(
                "[HapClient] %s Failed to get characteristics for %s with iid %s: %r",
                service.instance,
                service.service_name,
                iid,
                err,
            )
            return None
        service.values[char.type] = char.value
        return char

    async def async_set_characteristic(
        self, service: ServiceRecord, iid: int, value
    ) -> Optional[CharacteristicRecord]:
        """Write one characteristic, then read it back.

        :param value: The value to set.
        :type value: bool, int, float or str

        :return: The characteristic as read after the write, or None if
            the write failed.
        """
        self._ensure_session()
        chars = [{HAP_REPR_AID: service.aid, HAP_REPR_IID: iid, HAP_REPR_VALUE: value}]
        try:
            await self.http.async_put_characteristics(service.instance, chars, self.pin)
        except HAP_REQUEST_ERRORS as err:
            self.logger.error(
                "[HapClient] %s Failed to set value for %s.",
                service.instance,
                service.service_name,
            )
            if isinstance(err, HAPResponseError) and err.status == HTTP_UNAUTHORIZED:
                self.logger.warning(
                    "[HapClient] %s Make sure Homebridge pin for this instance is set to %s.",
                    service.instance,
                    self.pin,
                )
            else:
                self.logger.error("[HapClient] %r", err)
            return None
        return await self.async_get_characteristic(service, iid)
