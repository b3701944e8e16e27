"""Constants shared by SAS signing and URL parsing."""

# Service version targeted when a SAS does not name one.
TARGET_STORAGE_VERSION = "2019-02-02"

# Canonical name prefixes
BLOB_SERVICE = "blob"
FILE_SERVICE = "file"

# Signed resource codes (sr)
SAS_BLOB_CONSTANT = "b"
SAS_BLOB_SNAPSHOT_CONSTANT = "bs"
SAS_CONTAINER_CONSTANT = "c"
SAS_FILE_CONSTANT = "f"
SAS_SHARE_CONSTANT = "s"

# Query parameter names
SNAPSHOT_QUERY_PARAMETER = "snapshot"
SHARE_SNAPSHOT_QUERY_PARAMETER = "sharesnapshot"

SAS_SERVICE_VERSION = "sv"
SAS_SERVICES = "ss"
SAS_RESOURCES_TYPES = "srt"
SAS_SIGNED_RESOURCE = "sr"
SAS_START_TIME = "st"
SAS_EXPIRY_TIME = "se"
SAS_SIGNED_PERMISSIONS = "sp"
SAS_IP_RANGE = "sip"
SAS_PROTOCOL = "spr"
SAS_SIGNED_IDENTIFIER = "si"
SAS_SIGNED_OBJECT_ID = "skoid"
SAS_SIGNED_TENANT_ID = "sktid"
SAS_SIGNED_KEY_START = "skt"
SAS_SIGNED_KEY_EXPIRY = "ske"
SAS_SIGNED_KEY_SERVICE = "sks"
SAS_SIGNED_KEY_VERSION = "skv"
SAS_SIGNATURE = "sig"
SAS_CACHE_CONTROL = "rscc"
SAS_CONTENT_DISPOSITION = "rscd"
SAS_CONTENT_ENCODING = "rsce"
SAS_CONTENT_LANGUAGE = "rscl"
SAS_CONTENT_TYPE = "rsct"

# Encoding order of every SAS query parameter.
SAS_QUERY_PARAMETER_ORDER = (
    SAS_SERVICE_VERSION,
    SAS_SERVICES,
    SAS_RESOURCES_TYPES,
    SAS_SIGNED_RESOURCE,
    SAS_START_TIME,
    SAS_EXPIRY_TIME,
    SAS_SIGNED_PERMISSIONS,
    SAS_IP_RANGE,
    SAS_PROTOCOL,
    SAS_SIGNED_IDENTIFIER,
    SAS_SIGNED_OBJECT_ID,
    SAS_SIGNED_TENANT_ID,
    SAS_SIGNED_KEY_START,
    SAS_SIGNED_KEY_EXPIRY,
    SAS_SIGNED_KEY_SERVICE,
    SAS_SIGNED_KEY_VERSION,
    SAS_SIGNATURE,
    SAS_CACHE_CONTROL,
    SAS_CONTENT_DISPOSITION,
    SAS_CONTENT_ENCODING,
    SAS_CONTENT_LANGUAGE,
    SAS_CONTENT_TYPE,
)
