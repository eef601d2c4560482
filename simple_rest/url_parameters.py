"""Query-string builder.

    parameters("foo", "123", "bar", "898")  ->  "?foo=123&bar=898"
"""

from __future__ import annotations

from urllib.parse import quote_plus


def parameters(*params: str) -> str:
    """Build a query string from alternating keys and values.

    Every key and value is form-encoded (UTF-8). No arguments gives "".

    Raises:
        ValueError: If an odd number of arguments is given.
    """
    if not params:
        return ""
    if len(params) % 2 != 0:
        raise ValueError(
            f"parameters() needs key/value pairs, got an odd number of arguments ({len(params)})"
        )
    pairs = [
        f"{quote_plus(str(key))}={quote_plus(str(value))}"
        for key, value in zip(params[::2], params[1::2])
    ]
    return "?" + "&".join(pairs)
