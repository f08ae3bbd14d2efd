"""Redaction of OAuth secrets in URLs before they are logged."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "***REDACTED***"

# Query parameters that carry OAuth codes, CSRF state or tokens
SENSITIVE_PARAMS = frozenset(
    {
        "code",
        "state",
        "access_token",
        "refresh_token",
        "client_secret",
        "authorization",
    }
)


def redact_sensitive_data(url: str) -> str:
    """Replace the values of sensitive query parameters in a URL.

    Parameter names are matched case-insensitively; the rest of the URL,
    including parameter order, is kept.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    query = [
        (name, REDACTED if name.lower() in SENSITIVE_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))
