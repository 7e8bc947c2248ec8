"""This module contains constants used by other modules."""
MAJOR_VERSION = 1
MINOR_VERSION = 0
PATCH_VERSION = 0
__short_version__ = "{}.{}".format(MAJOR_VERSION, MINOR_VERSION)
__version__ = "{}.{}".format(__short_version__, PATCH_VERSION)
REQUIRED_PYTHON_VER = (3, 9)

BASE_UUID = "-0000-1000-8000-0026BB765291"

# ### Discovery ###
HAP_SERVICE_TYPE = "_hap._tcp.local."
DISCOVERY_WINDOW = 60  # seconds a discovery round stays open
SERVICE_INFO_TIMEOUT = 3000  # milliseconds to resolve an advertisement
TXT_IDENTITY = "id"
TXT_DISPLAY_NAME = "md"

# ### Timeouts ###
PROBE_TIMEOUT = 1  # seconds
REQUEST_TIMEOUT = 10  # seconds

# ### Instance health ###
INSTANCE_FAILURE_THRESHOLD = 5  # failures tolerated before eviction

# ### HAP Permissions ###
HAP_PERMISSION_NOTIFY = "ev"
HAP_PERMISSION_READ = "pr"
HAP_PERMISSION_WRITE = "pw"

# ### HAP representation ###
HAP_REPR_ACCS = "accessories"
HAP_REPR_AID = "aid"
HAP_REPR_CHARS = "characteristics"
HAP_REPR_DESC = "description"
HAP_REPR_FORMAT = "format"
HAP_REPR_IID = "iid"
HAP_REPR_LINKED = "linked"
HAP_REPR_MAX_VALUE = "maxValue"
HAP_REPR_MIN_STEP = "minStep"
HAP_REPR_MIN_VALUE = "minValue"
HAP_REPR_PERM = "perms"
HAP_REPR_SERVICES = "services"
HAP_REPR_STATUS = "status"
HAP_REPR_TYPE = "type"
HAP_REPR_UNIT = "unit"
HAP_REPR_VALUE = "value"

# ### HTTP ###
HAP_PATH_ACCESSORIES = "/accessories"
HAP_PATH_CHARACTERISTICS = "/characteristics"
HAP_HEADER_AUTHORIZATION = "Authorization"
HAP_CONTENT_TYPE = "application/hap+json"
HTTP_UNAUTHORIZED = 401

# ### Types hidden from the flattened model ###
SERVICE_ACCESSORY_INFORMATION = "AccessoryInformation"
CHAR_NAME = "Name"
