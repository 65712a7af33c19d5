# Shared constants for the request pipeline.

SDK_VERSION = "0.1.0"

DEFAULT_DOMAIN = "https://open.feishu.cn"
OPEN_API_PREFIX = "open-apis"

APP_TYPE_INTERNAL = "internal"
APP_TYPE_ISV = "isv"

# Retries after the first attempt
MAX_RETRY_COUNT = 1

USER_AGENT = f"oapi-sdk-python/{SDK_VERSION}"
DEFAULT_HTTP_REQUEST_HEADERS = {"User-Agent": USER_AGENT}

HTTP_HEADER_CONTENT_TYPE = "Content-Type"
HTTP_HEADER_REQUEST_ID = "X-Request-Id"
CONTENT_TYPE_JSON = "application/json"
DEFAULT_CONTENT_TYPE = "application/json; charset=utf-8"

# Context keys
CTX_KEY_REQUEST_ID = HTTP_HEADER_REQUEST_ID
CTX_KEY_HTTP_STATUS_CODE = "http_status_code"
CTX_KEY_TENANT_KEY = "tenant_key"
CTX_KEY_USER_ACCESS_TOKEN = "user_access_token"

APPLY_APP_TICKET_PATH = "auth/v3/app_ticket/resend"

# Envelope codes
ERR_CODE_OK = 0
ERR_CODE_APP_TICKET_INVALID = 10012
ERR_CODE_ACCESS_TOKEN_INVALID = 99991671
ERR_CODE_APP_ACCESS_TOKEN_INVALID = 99991664
ERR_CODE_TENANT_ACCESS_TOKEN_INVALID = 99991663

RETRYABLE_ERR_CODES = frozenset(
    {
        ERR_CODE_ACCESS_TOKEN_INVALID,
        ERR_CODE_APP_ACCESS_TOKEN_INVALID,
        ERR_CODE_TENANT_ACCESS_TOKEN_INVALID,
    }
)

TEMP_FILE_PREFIX = ".oapisdk"
