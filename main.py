"""An example of how to find instances and list their services.

This is:
1. Create a HapClient with the pin of your instances.
2. Let it discover the instances on the local network for a while.
3. Fetch all services, print them and toggle the first switch found.
"""
import asyncio
import logging

from hapclient.client import HapClient

logging.basicConfig(level=logging.DEBUG)

PIN = "031-45-154"


def instance_discovered(instance):
    print("Discovered {} ({})".format(instance.display_name, instance))


async def main():
    async with HapClient(PIN, config={"debug": True}) as client:
        client.add_listener(instance_discovered)
        await asyncio.sleep(10)

        services = await client.async_get_all_services()
        for service in services:
            print("{} [{}]: {}".format(service.service_name, service.human_type, service.values))

        switch = next((s for s in services if s.type == "Switch"), None)
        if switch is None:
            return
        on = client.get_characteristic_by_type(switch, "On")
        result = await client.async_set_characteristic(switch, on.iid, not on.value)
        if result is not None:
            print("{} is now {}".format(switch.service_name, result.value))


if __name__ == "__main__":
    asyncio.run(main())
