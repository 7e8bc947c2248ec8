import asyncio
import functools
import hashlib
import re
from typing import Optional
from uuid import UUID

from .const import BASE_UUID

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|1[0-9][0-9]|[1-9][0-9]|[0-9])"
IPV4_REGEX = re.compile(r"(?:{0}\.){{3}}{0}".format(_OCTET))
CAMEL_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
CAMEL_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
WORD_SEPARATORS = re.compile(r"[\s_]+")


def iscoro(func):
    """Check if the function is a coroutine or if the function is a ``functools.partial``,
    check the wrapped function for the same.
    """
    if isinstance(func, functools.partial):
        func = func.func
    return asyncio.iscoroutinefunction(func)


def uuid_to_hap_type(uuid):
    """Convert a UUID to a HAP type."""
    long_type = str(uuid).upper()
    if not long_type.endswith(BASE_UUID):
        return long_type
    return long_type.split("-", 1)[0].lstrip("0")


def hap_type_to_uuid(hap_type):
    """Convert a HAP type to a UUID."""
    if "-" in hap_type:
        return UUID(hap_type)
    return UUID("0" * (8 - len(hap_type)) + hap_type + BASE_UUID)


def normalize_hap_type(hap_type) -> Optional[str]:
    """Return the long upper case form of a short or long HAP type.

    ``None`` is returned for anything that is not a valid type.
    """
    if not isinstance(hap_type, str) or not hap_type:
        return None
    try:
        return str(hap_type_to_uuid(hap_type)).upper()
    except ValueError:
        return None


def humanize(name: str) -> str:
    """Split a camel case type name into capitalized words.

    ``"TemperatureSensor"`` becomes ``"Temperature Sensor"``.
    """
    name = CAMEL_LOWER_UPPER.sub(r"\1 \2", name)
    name = CAMEL_ACRONYM.sub(r"\1 \2", name)
    return " ".join(
        word[0].upper() + word[1:].lower()
        for word in WORD_SEPARATORS.split(name)
        if word
    )


def is_ipv4_address(address) -> bool:
    """Check for a strict dotted-quad IPv4 address without leading zeros."""
    return isinstance(address, str) and IPV4_REGEX.fullmatch(address) is not None


def service_unique_id(identity: str, aid: int, iid: int, type_id: str) -> str:
    """Return the global key of a service.

    The result only depends on its arguments and so is stable across sweeps.
    """
    material = ":".join((identity, str(aid), str(iid), type_id))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def char_query_id(aid: int, iid: int) -> str:
    """Return the ``aid.iid`` form used in characteristic queries."""
    return "{}.{}".format(aid, iid)
