"""HTTP requests against the unencrypted accessory API of an instance.

This is a thin layer over an ``aiohttp.ClientSession``. Every method raises
on failure, callers decide what a failure means for them:

- ``aiohttp.ClientError`` for connection problems,
- ``asyncio.TimeoutError`` when the timeout expires,
- ``HAPResponseError`` for a non successful HTTP status,
- ``ValueError`` when the body is not the expected HAP json.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from .const import (
    HAP_CONTENT_TYPE,
    HAP_HEADER_AUTHORIZATION,
    HAP_PATH_ACCESSORIES,
    HAP_PATH_CHARACTERISTICS,
    HAP_REPR_ACCS,
    HAP_REPR_CHARS,
    HAP_REPR_STATUS,
    REQUEST_TIMEOUT,
)
from .json import from_hap_json, to_hap_json

logger = logging.getLogger(__name__)

HAP_STATUS_SUCCESS = 0


class HAPResponseError(Exception):
    """An instance answered with an error status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        super().__init__(
            "HTTP {}{}".format(status, ": {}".format(message) if message else "")
        )
        self.status = status


# Everything a request against an instance may raise.
HAP_REQUEST_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, HAPResponseError, ValueError)


class HAPHttpClient:
    """Issues the accessory API requests for any instance.

    :param session: The session used for all requests. It is not closed
        by this class.
    :type session: aiohttp.ClientSession

    :param request_timeout: Seconds a request may take unless the caller
        passes its own timeout.
    :type request_timeout: float
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession],
        request_timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.session = session
        self.request_timeout = request_timeout

    async def _async_request(
        self,
        method: str,
        url: str,
        *,
        timeout: Optional[float],
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[bytes] = None,
    ) -> Any:
        """Send a request and return the decoded body, None if it is empty."""
        logger.debug("%s %s %s", method, url, params or "")
        async with self.session.request(
            method,
            url,
            params=params,
            headers=headers,
            data=data,
            timeout=aiohttp.ClientTimeout(
                total=self.request_timeout if timeout is None else timeout
            ),
        ) as resp:
            body = await resp.read()
            if resp.status >= 300:
                raise HAPResponseError(resp.status, resp.reason)
        if not body:
            return None
        return from_hap_json(body)

    async def async_get_accessories(
        self, instance, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Return the accessories of an instance.

        :param instance: Anything with an ``url(path)`` method, usually an
            :class:`hapclient.instance.Instance`.
        """
        body = await self._async_request(
            "GET", instance.url(HAP_PATH_ACCESSORIES), timeout=timeout
        )
        if not isinstance(body, dict) or not isinstance(body.get(HAP_REPR_ACCS), list):
            raise ValueError("Response has no accessories")
        return body[HAP_REPR_ACCS]

    async def async_get_characteristics(
        self, instance, char_ids: Iterable[str], timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Read characteristics given as ``aid.iid`` strings."""
        body = await self._async_request(
            "GET",
            instance.url(HAP_PATH_CHARACTERISTICS),
            params={"id": ",".join(char_ids)},
            timeout=timeout,
        )
        if not isinstance(body, dict) or not isinstance(body.get(HAP_REPR_CHARS), list):
            raise ValueError("Response has no characteristics")
        return body[HAP_REPR_CHARS]

    async def async_put_characteristics(
        self,
        instance,
        chars: List[Dict[str, Any]],
        pin: str,
        timeout: Optional[float] = None,
    ) -> None:
        """Write characteristics, authorized with the given pin.

        A multi-status reply with any failed characteristic raises
        ``HAPResponseError`` just like an HTTP error.
        """
        body = await self._async_request(
            "PUT",
            instance.url(HAP_PATH_CHARACTERISTICS),
            headers={
                HAP_HEADER_AUTHORIZATION: pin,
                "Content-Type": HAP_CONTENT_TYPE,
            },
            data=to_hap_json({HAP_REPR_CHARS: chars}),
            timeout=timeout,
        )
        if not isinstance(body, dict):
            return
        for char in body.get(HAP_REPR_CHARS) or []:
            status = char.get(HAP_REPR_STATUS, HAP_STATUS_SUCCESS)
            if status != HAP_STATUS_SUCCESS:
                raise HAPResponseError(207, "characteristic status {}".format(status))
