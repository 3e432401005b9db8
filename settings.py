from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging configuration
LOG_LEVEL = config.get("LOG_LEVEL", "info")
# Empty means console only
LOG_FILE = config.get("LOG_FILE", "")

# Interception defaults (can be overridden per interceptor via configure())
# Number of retries after the initial request was unauthorized
FETCH_RETRY_COUNT = config.get("FETCH_RETRY_COUNT", 1)
# Whether a proactive token invalidation blocks the request that triggered it
WAIT_FOR_TOKEN_RENEWAL = config.get("WAIT_FOR_TOKEN_RENEWAL", False)

# Timeout configuration for clients built by transport.create_client
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Request timeout: Total timeout for a single request
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 120.0)
