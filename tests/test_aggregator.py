"""Tests for hapclient.aggregator."""
import asyncio
import logging

import aiohttp
import pytest

from hapclient.aggregator import Aggregator
from hapclient.config import Config
from hapclient.hap_http import HAPResponseError
from hapclient.instance import Instance
from tests import (
    TYPE_CHAR_CURRENT_TEMPERATURE,
    TYPE_CHAR_NAME,
    TYPE_TEMPERATURE_SENSOR,
    TYPE_UNKNOWN,
    accessory_information,
    hap_char,
    hap_service,
    switch_accessory,
)


def sensor_accessory(aid=3, name=None):
    chars = [
        hap_char(11, TYPE_CHAR_CURRENT_TEMPERATURE, 21.5, "float", ["pr", "ev"]),
        hap_char(12, TYPE_UNKNOWN, "x", "string", ["pr"]),
    ]
    if name is not None:
        chars.insert(0, hap_char(13, TYPE_CHAR_NAME, name, "string", ["pr"]))
    return {
        "aid": aid,
        "services": [
            accessory_information(1, "Sensor", "Acme", ""),
            hap_service(10, TYPE_TEMPERATURE_SENSOR, chars),
            hap_service(20, TYPE_UNKNOWN, [hap_char(21, "25", True)]),
        ],
    }


@pytest.fixture
def aggregator(pool, http, registry, config):
    return Aggregator(pool, http, registry=registry, config=config)


def test_parse_accessories(aggregator, instance):
    """Test the accessory tree is flattened into services."""
    services = aggregator.parse_accessories(
        instance, [switch_accessory(2, "Lamp", on=1), sensor_accessory(3)]
    )
    assert [(s.aid, s.iid, s.type) for s in services] == [
        (2, 8, "Switch"),
        (3, 10, "TemperatureSensor"),
    ]

    switch, sensor = services
    assert switch.instance is instance
    assert switch.type_id == "00000049-0000-1000-8000-0026BB765291"
    assert switch.human_type == "Switch"
    assert switch.service_name == "Lamp"
    assert switch.values == {"On": True}
    assert switch.accessory_information == {
        "Name": "Lamp",
        "Manufacturer": "Acme",
        "Model": "B1",
    }
    assert [c.type for c in switch.characteristics] == ["On"]
    assert switch.characteristics[0].service_name == "Lamp"
    assert switch.characteristics[0].service_type == "Switch"

    # No Name characteristic, unknown characteristic dropped, empty model dropped.
    assert sensor.service_name == "Temperature Sensor"
    assert sensor.human_type == "Temperature Sensor"
    assert sensor.values == {"CurrentTemperature": 21.5}
    assert sensor.accessory_information == {"Name": "Sensor", "Manufacturer": "Acme"}


def test_parse_accessories_name_characteristic(aggregator, instance):
    services = aggregator.parse_accessories(instance, [sensor_accessory(3, "Kitchen")])
    assert services[0].service_name == "Kitchen"
    assert "Name" not in services[0].values


def test_parse_accessories_long_types(aggregator, instance):
    """Test long and short forms of a type are treated the same."""
    accessory = switch_accessory(2)
    accessory["services"][1]["type"] = "00000049-0000-1000-8000-0026bb765291"
    services = aggregator.parse_accessories(instance, [accessory])
    assert services[0].type == "Switch"
    assert services[0].unique_id == aggregator.parse_accessories(
        instance, [switch_accessory(2)]
    )[0].unique_id


def test_parse_accessories_no_services(aggregator, instance):
    assert aggregator.parse_accessories(instance, [{"aid": 1}]) == []
    assert aggregator.parse_accessories(instance, []) == []


def test_parse_accessories_malformed(aggregator, instance):
    with pytest.raises(KeyError):
        aggregator.parse_accessories(instance, [{"services": []}])


@pytest.mark.asyncio
async def test_get_all_services_empty_pool(aggregator, http, caplog):
    with caplog.at_level(logging.DEBUG):
        assert await aggregator.async_get_all_services() == []
    assert "No instances have been discovered" in caplog.text
    http.async_get_accessories.assert_not_called()


@pytest.mark.asyncio
async def test_get_all_services_no_debug(pool, http, caplog):
    aggregator = Aggregator(pool, http, config=Config(debug=False))
    with caplog.at_level(logging.DEBUG):
        assert await aggregator.async_get_all_services() == []
    assert "No instances have been discovered" not in caplog.text


@pytest.mark.asyncio
async def test_get_all_services_isolates_failures(aggregator, pool, http, caplog):
    """Test a failing instance does not affect the others."""
    good = Instance("AA:BB", "Good", "192.168.1.10", 51826)
    bad = Instance("CC:DD", "Bad", "192.168.1.11", 51826)
    other = Instance("EE:FF", "Other", "192.168.1.12", 51826)
    for item in (good, bad, other):
        pool.upsert(item)

    async def get_accessories(instance, timeout=None):
        if instance is bad:
            raise aiohttp.ClientConnectionError("refused")
        return [switch_accessory(2, instance.display_name)]

    http.async_get_accessories.side_effect = get_accessories

    with caplog.at_level(logging.ERROR):
        services = await aggregator.async_get_all_services()

    assert [s.service_name for s in services] == ["Good", "Other"]
    assert [s.instance for s in services] == [good, other]
    assert bad.consecutive_failures == 1
    assert good.consecutive_failures == 0
    assert "Failed to connect" in caplog.text
    assert str(bad) in caplog.text


@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        HAPResponseError(500),
        ValueError("not json"),
        aiohttp.ClientPayloadError("broken"),
    ],
)
@pytest.mark.asyncio
async def test_get_all_services_counts_errors(aggregator, pool, http, instance, error):
    pool.upsert(instance)
    http.async_get_accessories.side_effect = error
    assert await aggregator.async_get_all_services() == []
    assert instance.consecutive_failures == 1


@pytest.mark.asyncio
async def test_get_all_services_malformed_tree(aggregator, pool, http, instance):
    pool.upsert(instance)
    http.async_get_accessories.return_value = [{"aid": 1, "services": [None]}]
    assert await aggregator.async_get_all_services() == []
    assert instance.consecutive_failures == 1


@pytest.mark.asyncio
async def test_get_all_services_evicts(aggregator, pool, http, instance):
    """Test an instance is gone after the sixth failed sweep."""
    pool.upsert(instance)
    http.async_get_accessories.side_effect = asyncio.TimeoutError()

    for _ in range(5):
        await aggregator.async_get_all_services()
        assert instance.identity in pool

    await aggregator.async_get_all_services()
    assert instance.identity not in pool
    assert http.async_get_accessories.call_count == 6

    assert await aggregator.async_get_all_services() == []
    assert http.async_get_accessories.call_count == 6


@pytest.mark.asyncio
async def test_get_all_services_is_fresh(aggregator, pool, http, instance):
    """Test every sweep fetches again and returns new records."""
    pool.upsert(instance)
    http.async_get_accessories.side_effect = lambda *args, **kwargs: [
        switch_accessory(2)
    ]

    first = await aggregator.async_get_all_services()
    second = await aggregator.async_get_all_services()

    assert http.async_get_accessories.call_count == 2
    assert first[0] is not second[0]
    assert first[0].unique_id == second[0].unique_id


@pytest.mark.asyncio
async def test_get_all_services_success_resets_failures(aggregator, pool, http, instance):
    """Test only failures in a row lead to eviction."""
    pool.upsert(instance)
    outcomes = [False] * 3 + [True] + [False] * 3

    async def get_accessories(instance, timeout=None):
        if not outcomes.pop(0):
            raise asyncio.TimeoutError()
        return [switch_accessory(2)]

    http.async_get_accessories.side_effect = get_accessories

    for _ in range(3):
        await aggregator.async_get_all_services()
    assert instance.consecutive_failures == 3

    assert len(await aggregator.async_get_all_services()) == 1
    assert instance.consecutive_failures == 0

    for _ in range(3):
        await aggregator.async_get_all_services()
    assert instance.consecutive_failures == 3
    assert instance.identity in pool


@pytest.mark.asyncio
async def test_get_all_services_malformed_tree_not_a_success(
    aggregator, pool, http, instance
):
    pool.upsert(instance)
    instance.consecutive_failures = 2
    http.async_get_accessories.return_value = [{"services": []}]
    await aggregator.async_get_all_services()
    assert instance.consecutive_failures == 3


@pytest.mark.asyncio
async def test_get_all_services_logs_timeout(aggregator, pool, http, instance, caplog):
    pool.upsert(instance)
    http.async_get_accessories.side_effect = asyncio.TimeoutError()
    with caplog.at_level(logging.ERROR):
        await aggregator.async_get_all_services()
    assert "Failed to connect: TimeoutError()" in caplog.text
