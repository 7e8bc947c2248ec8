"""DiscoveryEngine - finds HAP instances on the local network.

A discovery round browses mDNS for ``_hap._tcp.local.`` for a fixed window,
after which the engine goes back to idle. Starting discovery while a round
is running only sends the browse query again on the same zeroconf session.

Every resolved advertisement goes through ``async_process_advertisement``:

1. Advertisements without identity, port or addresses are ignored.
2. A known identity only has its name and port merged, it is not probed
   again. A change is announced as a discovered instance.
3. Blacklisted identities are ignored.
4. Otherwise the first IPv4 address is probed with a short ``/accessories``
   request. Only that first address is tried, whatever the outcome. An
   instance that answers is added to the pool and announced.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from zeroconf import ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from .config import Config
from .const import (
    DISCOVERY_WINDOW,
    HAP_PATH_ACCESSORIES,
    HAP_SERVICE_TYPE,
    PROBE_TIMEOUT,
    SERVICE_INFO_TIMEOUT,
    TXT_DISPLAY_NAME,
    TXT_IDENTITY,
)
from .hap_http import HAP_REQUEST_ERRORS, HAPHttpClient
from .instance import Instance, InstancePool
from .util import is_ipv4_address

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_DISCOVERING = "discovering"


def _decode_txt(properties, key: str) -> Optional[str]:
    value = properties.get(key.encode("utf-8"))
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class Advertisement:
    """What an mDNS advertisement tells about an instance."""

    __slots__ = ("identity", "display_name", "port", "addresses")

    def __init__(
        self,
        identity: Optional[str],
        display_name: Optional[str],
        port: Optional[int],
        addresses: Optional[List[str]] = None,
    ) -> None:
        self.identity = identity
        self.display_name = display_name
        self.port = port
        self.addresses = list(addresses or [])

    def __repr__(self):
        return "<advertisement identity={} display_name={} port={} addresses={}>".format(
            self.identity, self.display_name, self.port, self.addresses
        )

    @classmethod
    def from_service_info(cls, info) -> "Advertisement":
        """Build an advertisement from a resolved zeroconf ``ServiceInfo``."""
        properties = info.properties or {}
        return cls(
            _decode_txt(properties, TXT_IDENTITY),
            _decode_txt(properties, TXT_DISPLAY_NAME),
            info.port,
            info.parsed_addresses(),
        )


class DiscoveryEngine:
    """Browses for instances and keeps the pool up to date.

    :param on_discovered: Called with the Instance each time an instance is
        added to the pool or its name or port changed. Calls happen in
        discovery order.

    :param async_zeroconf_instance: An AsyncZeroconf instance to browse with.
        If not given, one is created on start and closed on stop.
    """

    def __init__(
        self,
        pool: InstancePool,
        http: HAPHttpClient,
        *,
        config: Optional[Config] = None,
        on_discovered: Optional[Callable[[Instance], None]] = None,
        async_zeroconf_instance: Optional[AsyncZeroconf] = None,
        discovery_window: float = DISCOVERY_WINDOW,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.pool = pool
        self.http = http
        self.config = config or Config()
        self.on_discovered = on_discovered
        self.discovery_window = discovery_window
        self.logger = log or logger
        self.state = STATE_IDLE
        self.aiozc = async_zeroconf_instance
        self._owns_zeroconf = async_zeroconf_instance is None
        self._browser: Optional[AsyncServiceBrowser] = None
        self._window_task: Optional[asyncio.Task] = None
        self._resolve_tasks = set()

    def _debug(self, msg, *args):
        if self.config.debug:
            self.logger.debug(msg, *args)

    @property
    def is_discovering(self) -> bool:
        return self.state == STATE_DISCOVERING

    async def async_start_discovery(self) -> None:
        """Start a discovery round, or query again if one is running."""
        if self.state == STATE_DISCOVERING:
            self._debug("[HapClient] Discovery :: Re-broadcasting discovery query")
            await self._async_restart_browser()
            return

        self.state = STATE_DISCOVERING
        if self.aiozc is None:
            self.aiozc = AsyncZeroconf()
        self._browser = self._create_browser()
        self._window_task = asyncio.ensure_future(self._async_discovery_window())
        self._debug("[HapClient] Discovery :: Started")

    async def async_stop(self) -> None:
        """End any running round and release the zeroconf session."""
        if self._window_task is not None and self._window_task is not asyncio.current_task():
            self._window_task.cancel()
        self._window_task = None
        await self._async_end_discovery()

        for task in list(self._resolve_tasks):
            task.cancel()
        self._resolve_tasks.clear()

        if self.aiozc is not None and self._owns_zeroconf:
            await self.aiozc.async_close()
            self.aiozc = None

    def _create_browser(self) -> AsyncServiceBrowser:
        return AsyncServiceBrowser(
            self.aiozc.zeroconf,
            HAP_SERVICE_TYPE,
            handlers=[self._service_state_change],
        )

    async def _async_restart_browser(self) -> None:
        """Replace the browser on the same session, which queries right away."""
        old_browser = self._browser
        self._browser = self._create_browser()
        if old_browser is not None:
            await old_browser.async_cancel()

    async def _async_discovery_window(self) -> None:
        await asyncio.sleep(self.discovery_window)
        self._window_task = None
        await self._async_end_discovery()

    async def _async_end_discovery(self) -> None:
        browser, self._browser = self._browser, None
        if browser is not None:
            await browser.async_cancel()
        if self.state == STATE_DISCOVERING:
            self._debug("[HapClient] Discovery :: Ended")
        self.state = STATE_IDLE

    def _service_state_change(
        self, zeroconf, service_type: str, name: str, state_change: ServiceStateChange
    ) -> None:
        """Handle browser events, run in the event loop."""
        if state_change not in (ServiceStateChange.Added, ServiceStateChange.Updated):
            return
        task = asyncio.ensure_future(self._async_resolve(zeroconf, service_type, name))
        self._resolve_tasks.add(task)
        task.add_done_callback(self._resolve_tasks.discard)

    async def _async_resolve(self, zeroconf, service_type: str, name: str) -> None:
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zeroconf, SERVICE_INFO_TIMEOUT):
            self._debug("[HapClient] Discovery :: Could not resolve %s", name)
            return
        await self.async_process_advertisement(Advertisement.from_service_info(info))

    def _emit(self, instance: Instance) -> None:
        if self.on_discovered is not None:
            self.on_discovered(instance)

    async def async_process_advertisement(
        self, advertisement: Advertisement
    ) -> Optional[Instance]:
        """Merge or probe an advertised instance.

        :return: The pooled instance, or None if the advertisement was
            discarded.
        :rtype: Instance
        """
        if (
            not advertisement.identity
            or not advertisement.port
            or not advertisement.addresses
        ):
            self._debug(
                "[HapClient] Discovery :: Ignoring device that contains no txt records. %s",
                advertisement,
            )
            return None

        identity = advertisement.identity
        self._debug("[HapClient] Discovery :: Found HAP device with username %s", identity)
        candidate = Instance(identity, advertisement.display_name, None, advertisement.port)

        existing = self.pool.get(identity)
        if existing is not None:
            if self.pool.upsert(candidate):
                self._debug("[HapClient] Discovery :: %s Instance Updated", existing)
                self._emit(existing)
            return existing

        if self.config.is_blacklisted(identity):
            self._debug(
                "[HapClient] Discovery :: Instance with username %s found in blacklist. Disregarding.",
                identity,
            )
            return None

        candidate.address = next(
            (address for address in advertisement.addresses if is_ipv4_address(address)),
            None,
        )
        if candidate.address is None or not await self._async_probe(candidate):
            self._debug(
                "[HapClient] Discovery :: Could not register to device with username %s",
                identity,
            )
            return None

        if self.pool.upsert(candidate):
            self._debug("[HapClient] Discovery :: %s Instance Registered", candidate)
            self._emit(self.pool.get(identity))
        return self.pool.get(identity)

    async def _async_probe(self, candidate: Instance) -> bool:
        """Check that the candidate answers with a well formed accessory list."""
        url = candidate.url(HAP_PATH_ACCESSORIES)
        self._debug("[HapClient] Discovery :: Testing %s via %s", candidate.identity, url)
        try:
            await self.http.async_get_accessories(candidate, timeout=PROBE_TIMEOUT)
        except HAP_REQUEST_ERRORS as err:
            self._debug(
                "[HapClient] Discovery :: Failed %s via %s: %r", candidate.identity, url, err
            )
            return False
        self._debug("[HapClient] Discovery :: Success %s via %s", candidate.identity, url)
        return True
