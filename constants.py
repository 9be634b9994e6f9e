"""
Application constants for the Drip API client

Values that are fixed for the life of the process. Anything an operator may
want to change lives in config.py and defaults to the values below.
"""

# Drip REST API
DEFAULT_BASE_URL = "https://api.getdrip.com/v2/"
ACCEPT_MEDIA_TYPE = "application/vnd.api+json"
JSON_CONTENT_TYPE = "application/json"

# Transport timeouts (seconds)
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_TLS_HANDSHAKE_TIMEOUT = 5.0
DEFAULT_REQUEST_TIMEOUT = 10.0

# Status codes
UNTAG_SUCCESS_STATUS = 204

# Response bodies longer than this are truncated in debug logs
LOG_TRUNCATE_LENGTH = 1200
