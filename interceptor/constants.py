"""Error codes and HTTP status constants for the token interceptor"""

ERROR_INVALID_CONFIG = "invalid-config"
ERROR_REQUEST_NOT_SENT = "request-not-sent"
ERROR_NOT_CONFIGURED = "not-configured"

STATUS_OK = 200
STATUS_UNAUTHORIZED = 401

# Policy callbacks which must be supplied to configure()
REQUIRED_CALLBACKS = (
    "create_access_token_request",
    "parse_access_token",
    "should_intercept",
    "authorize_request",
    "is_response_unauthorized",
)
