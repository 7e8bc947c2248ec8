#!/usr/bin/env python3
"""Create the type tables of hapclient from the HomeKit Accessory Simulator Types.

Only the name and UUID of each type are kept, the client learns everything
else about a characteristic from the instance it talks to.
"""
import json
import plistlib

# This path could be different.
HOMEKIT_TYPES_PLIST = "/Applications/Xcode.app/Contents/Applications/HomeKit Accessory Simulator.app/Contents/Frameworks/HAPAccessoryKit.framework/Versions/A/Resources/default.metadata.plist"
CHAR_OUT_FILE = "./hapclient/resources/characteristics.json"
SERVICE_OUT_FILE = "./hapclient/resources/services.json"


def camel_name(infos):
    """Transform the name to camel case, no spaces or dots."""
    for info in infos:
        info["Name"] = info["Name"].replace(" ", "").replace(".", "_")


def list2dict(infos):
    """We want a mapping name: {UUID: uuid} for convenience, not a list."""
    info_dict = {}
    for info in infos:
        uuid = info["UUID"].upper()
        if info["Name"] in info_dict and info_dict[info["Name"]]["UUID"] != uuid:
            raise ValueError("Duplicate name {}".format(info["Name"]))
        info_dict[info["Name"]] = {"UUID": uuid}
    return info_dict


def check_unique_uuids(info_dict):
    """The tables are looked up in both directions, so UUIDs must be unique."""
    seen = {}
    for name, info in info_dict.items():
        other = seen.setdefault(info["UUID"], name)
        if other != name:
            raise ValueError("{} and {} share {}".format(other, name, info["UUID"]))


def main():
    """Reads the HomeKit Simulator types and creates the hapclient json tables."""
    with open(HOMEKIT_TYPES_PLIST, "rb") as types_plist_fp:
        type_info = plistlib.load(types_plist_fp)
    char_info = type_info["Characteristics"]
    service_info = type_info["Services"]

    camel_name(char_info)
    camel_name(service_info)

    for info, out_file in ((char_info, CHAR_OUT_FILE), (service_info, SERVICE_OUT_FILE)):
        info_dict = list2dict(info)
        check_unique_uuids(info_dict)
        with open(out_file, "w") as out_fp:
            json.dump(info_dict, out_fp, indent=3, sort_keys=True)
            out_fp.write("\n")


if __name__ == "__main__":
    main()
