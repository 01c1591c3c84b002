# http(s)://user:pass@host:port
PROXY = r'^(?:(?P<scheme>https?:\/\/))?(?:(?P<username>[^:@]+):(?P<password>[^@]+)@)?(?P<host>[^:\/]+)(?::(?P<port>\d+))?$'

# Timeout constants
DEFAULT_TIMEOUT = 10.0
MAX_TIMEOUT_SECONDS = 3600  # 1 час максимум
MILLISECONDS_MULTIPLIER = 1000  # Конвертация секунд в миллисекунды

# Route patterns
CATCH_ALL_PATTERN = "**/*"

# Demo site used by the guide
DEMO_URL = "https://demo.playwright.dev/api-mocking"
FRUITS_API_PATTERN = "*/**/api/v1/fruits"

# Content-Type constants
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_HTML = "text/html"
CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_BINARY = "application/octet-stream"
CONTENT_TYPE_IMAGE = "image/"
CONTENT_TYPE_JAVASCRIPT = "javascript"
CONTENT_TYPE_CSS = "text/css"

# Default values
DEFAULT_HTTP_SCHEME = "http://"
DEFAULT_CHARSET = "utf-8"
DEFAULT_ABORT_ERROR = "failed"
UNKNOWN_HEADER_TYPE = "unknown"

# Коды ошибок, которые принимает route.abort()
ABORT_ERROR_CODES = (
    "aborted",
    "accessdenied",
    "addressunreachable",
    "blockedbyclient",
    "blockedbyresponse",
    "connectionaborted",
    "connectionclosed",
    "connectionfailed",
    "connectionrefused",
    "connectionreset",
    "internetdisconnected",
    "namenotresolved",
    "timedout",
    "failed",
)

# Error messages
ERROR_MESSAGE_UNKNOWN = "Unknown error occurred"
ERROR_TIMEOUT_POSITIVE = "Timeout must be positive"
ERROR_TIMEOUT_TOO_LARGE = "Timeout too large (max 3600 seconds)"
ERROR_UNKNOWN_CONNECTION_TYPE = "Unknown connection type"
ERROR_PAGE_NOT_AVAILABLE = "Page is not available"
ERROR_DUPLICATE_SLUGS = "Duplicate handler slugs"
ERROR_MOCK_BODY_CONFLICT = "MockResponse accepts either json or body, not both"
ERROR_MOCK_STATUS = "MockResponse status must be in range 100..599"
ERROR_MOCK_DELAY = "MockResponse delay must not be negative"
ERROR_MOCK_TIMES = "times must be a positive integer or None"
ERROR_ABORT_CODE = "Unknown abort error code"
ERROR_REQUEST_FAILED = "RequestFailed"
ERROR_HAR_NOT_FOUND = "HAR file not found at"
ERROR_RESPONSE_WAIT_TIMEOUT = "No matching response within"
ERROR_REQUEST_WAIT_TIMEOUT = "No matching request within"

# Log messages
LOG_NEW_PAGE_CREATING = "Creating a new page in the browser context..."
LOG_NEW_PAGE_CREATED = "New page created successfully."
LOG_BROWSER_CONTEXT_OPENED = "A new browser context has been opened."
LOG_START_FUNC_EXECUTING = "Executing start function"
LOG_START_FUNC_EXECUTED = "executed successfully."
LOG_NEW_SESSION_CREATED = "New session created successfully."
LOG_CLOSING_CONNECTION = "Closing"
LOG_CONNECTION_CLOSED = "connection was closed"
LOG_PREPARING_TO_CLOSE = "Preparing to close"
LOG_NO_CONNECTIONS = "No connections to close"
LOG_ERROR_CLOSING = "Error closing"
LOG_OPENING_BROWSER = "Opening new browser connection with proxy"
LOG_SYSTEM_PROXY = "SYSTEM_PROXY"
LOG_ROUTE_INSTALLED = "Route installed"
LOG_ROUTE_REMOVED = "Route removed"
LOG_REQUEST_MODIFIED = "Request modified by handler"
LOG_RESPONSE_MODIFIED = "Response modified by handler"
LOG_MODIFIER_FAILED = "Modifier failed, original kept"
LOG_MODIFIER_BAD_TYPE = "Modifier returned unexpected type"
LOG_REQUEST_MODIFIER_ANY_TYPE = "Modifier returned Request with HttpMethod.ANY, original method kept"
LOG_HANDLER_CAPTURED = "captured response from"
LOG_HANDLER_REJECTED = "rejected"
LOG_ALL_HANDLERS_DONE = "All handlers reached their limits, completing..."
LOG_INTERCEPT_TIMEOUT = "Timeout reached for interception"
LOG_UNSUPPORTED_PROTOCOL = "Passing through unsupported protocol"
LOG_FETCH_FAILED = "Route fetch failed"
LOG_REQUEST_UNREADABLE = "Request could not be read, passed through"
LOG_MOCK_REGISTERED = "Mock registered"
LOG_MOCK_SERVED = "Mock served"
LOG_MOCK_REMOVED = "Mock removed"
LOG_MOCK_EXHAUSTED = "Mock exhausted, route removed"
LOG_TRANSFORM_APPLIED = "Response transform applied"
LOG_HEADERS_CONTINUED = "Request continued with headers"
LOG_REQUEST_ABORTED = "Request aborted"
LOG_EVENT_REQUEST = "Request"
LOG_EVENT_RESPONSE = "Response"
LOG_EVENT_FINISHED = "Finished"
LOG_EVENT_FAILED = "Failed"
LOG_RECORDER_STARTED = "Network recorder attached"
LOG_RECORDER_STOPPED = "Network recorder detached"
LOG_CALLBACK_FAILED = "Event callback failed"
LOG_WAITING_RESPONSE = "Waiting for response"
LOG_WAITING_REQUEST = "Waiting for request"
LOG_HAR_REPLAY = "Replaying network from HAR"
LOG_HAR_RECORD = "Recording network into HAR"

# Binary families mapping (content-type -> file extension)
IMAGE_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
    'image/svg+xml': '.svg',
    'image/x-icon': '.ico',
    'image/avif': '.avif',
}

VIDEO_EXTENSIONS = {
    'video/mp4': '.mp4',
    'video/webm': '.webm',
    'video/ogg': '.ogv',
    'video/quicktime': '.mov',
}

AUDIO_EXTENSIONS = {
    'audio/mpeg': '.mp3',
    'audio/ogg': '.ogg',
    'audio/wav': '.wav',
    'audio/webm': '.weba',
    'audio/aac': '.aac',
}

FONT_EXTENSIONS = {
    'font/woff': '.woff',
    'font/woff2': '.woff2',
    'font/ttf': '.ttf',
    'font/otf': '.otf',
    'application/font-woff': '.woff',
}

APPLICATION_EXTENSIONS = {
    'application/pdf': '.pdf',
    'application/octet-stream': '.bin',
    'application/wasm': '.wasm',
}

ARCHIVE_EXTENSIONS = {
    'application/zip': '.zip',
    'application/gzip': '.gz',
    'application/x-tar': '.tar',
    'application/x-7z-compressed': '.7z',
}

JSON_EXTENSIONS = {
    'application/json': '.json',
    'application/ld+json': '.jsonld',
    'application/problem+json': '.json',
    'text/json': '.json',
}

# Неподдерживаемые протоколы для Route.fetch()
UNSUPPORTED_PROTOCOLS = (
    'chrome-extension:',
    'moz-extension:',
    'ms-browser-extension:',
    'safari-web-extension:',
    'edge-extension:',
    'data:',
    'blob:',
)
