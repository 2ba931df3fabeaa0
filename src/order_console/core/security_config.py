"""Keys redacted from structured console logs."""

# Credentials that may appear in request metadata or backend payloads.
SENSITIVE_KEYS: set[str] = {
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "api_key",
    "cookie",
    "set-cookie",
    "x-api-key",
}


def is_sensitive_key(key: str) -> bool:
    """Return True if a log field with this name must be redacted."""
    return key.lower() in SENSITIVE_KEYS
