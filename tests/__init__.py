import asyncio
import os

from aiohttp import web

from hapclient.json import from_hap_json, to_hap_json

# Absolutize paths to coverage config and output file because tests that
# spawn subprocesses also changes current working directory.
_sourceroot = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if "COV_CORE_CONFIG" in os.environ:
    os.environ["COVERAGE_FILE"] = os.path.join(_sourceroot, ".coverage")
    os.environ["COV_CORE_CONFIG"] = os.path.join(
        _sourceroot, os.environ["COV_CORE_CONFIG"]
    )

# Short HAP types used throughout the tests.
TYPE_ACCESSORY_INFORMATION = "3E"
TYPE_SWITCH = "49"
TYPE_TEMPERATURE_SENSOR = "8A"
TYPE_CHAR_NAME = "23"
TYPE_CHAR_ON = "25"
TYPE_CHAR_CURRENT_TEMPERATURE = "11"
TYPE_CHAR_MANUFACTURER = "20"
TYPE_CHAR_MODEL = "21"
TYPE_UNKNOWN = "A1B2C3D4-0000-1000-8000-001122334455"


def hap_char(iid, hap_type, value=None, fmt="bool", perms=("pr", "pw", "ev"), **extra):
    """Return the HAP representation of a characteristic."""
    char = {"iid": iid, "type": hap_type, "format": fmt, "perms": list(perms)}
    if value is not None:
        char["value"] = value
    char.update(extra)
    return char


def hap_service(iid, hap_type, chars, **extra):
    """Return the HAP representation of a service."""
    service = {"iid": iid, "type": hap_type, "characteristics": chars}
    service.update(extra)
    return service


def accessory_information(iid=1, name="Bridge", manufacturer="Acme", model="B1"):
    return hap_service(
        iid,
        TYPE_ACCESSORY_INFORMATION,
        [
            hap_char(iid + 1, TYPE_CHAR_NAME, name, "string", ["pr"], description="Name"),
            hap_char(
                iid + 2,
                TYPE_CHAR_MANUFACTURER,
                manufacturer,
                "string",
                ["pr"],
                description="Manufacturer",
            ),
            hap_char(iid + 3, TYPE_CHAR_MODEL, model, "string", ["pr"], description="Model"),
        ],
    )


def switch_accessory(aid=2, name="Lamp", on=False):
    """An accessory with one switch service whose On characteristic has iid 10."""
    return {
        "aid": aid,
        "services": [
            accessory_information(1, name),
            hap_service(
                8,
                TYPE_SWITCH,
                [
                    hap_char(9, TYPE_CHAR_NAME, name, "string", ["pr"]),
                    hap_char(10, TYPE_CHAR_ON, on, "bool", ["pr", "pw", "ev"]),
                ],
            ),
        ],
    }


class MockBridge:
    """A HAP instance serving a fixed accessory tree over aiohttp."""

    def __init__(self, accessories, pin="031-45-154"):
        self.accessories = accessories
        self.pin = pin
        self.delay = 0
        self.requests = []

    def app(self):
        app = web.Application()
        app.router.add_get("/accessories", self.handle_accessories)
        app.router.add_get("/characteristics", self.handle_get_characteristics)
        app.router.add_put("/characteristics", self.handle_put_characteristics)
        return app

    def find_char(self, aid, iid):
        for accessory in self.accessories:
            if accessory["aid"] != aid:
                continue
            for service in accessory["services"]:
                for char in service["characteristics"]:
                    if char["iid"] == iid:
                        return char
        return None

    @staticmethod
    def _json(data, status=200):
        return web.Response(
            body=to_hap_json(data), status=status, content_type="application/hap+json"
        )

    async def handle_accessories(self, request):
        self.requests.append(("GET", request.path_qs))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._json({"accessories": self.accessories})

    async def handle_get_characteristics(self, request):
        self.requests.append(("GET", request.path_qs))
        chars = []
        for aid_iid in request.query["id"].split(","):
            aid, iid = (int(i) for i in aid_iid.split("."))
            char = self.find_char(aid, iid)
            if char is None:
                chars.append({"aid": aid, "iid": iid, "status": -70409})
            else:
                chars.append({"aid": aid, "iid": iid, "value": char.get("value")})
        return self._json({"characteristics": chars})

    async def handle_put_characteristics(self, request):
        self.requests.append(("PUT", request.path_qs))
        if request.headers.get("Authorization") != self.pin:
            return self._json({"status": -70401}, status=401)
        body = from_hap_json(await request.read())
        for update in body["characteristics"]:
            self.find_char(update["aid"], update["iid"])["value"] = update["value"]
        return web.Response(status=204)
