"""
=============================================================================
FORM / QUERY CODEC
=============================================================================

Decodes `key=value&key=value` data, the format shared by URL query strings
and application/x-www-form-urlencoded request bodies:

    "name=Ada%20Lovelace&lang=en"
           │
           ▼  split on "&"
    ["name=Ada%20Lovelace", "lang=en"]
           │
           ▼  split each on the first "="
    [("name", "Ada%20Lovelace"), ("lang", "en")]
           │
           ▼  percent-decode keys and values
    {"name": "Ada Lovelace", "lang": "en"}

Two rules worth knowing:

1. Only %XX escapes are decoded. A "+" stays a literal "+" rather than
   becoming a space. Clients that want a space should send %20.

2. The result is a flat dict. When a key repeats, the last value wins:
   "a=1&a=2" gives {"a": "2"}.

=============================================================================
"""

from typing import Dict
from urllib.parse import unquote


def percent_decode(text: str) -> str:
    """
    Decode %XX escapes in a string.

    Escaped bytes are interpreted as UTF-8; sequences that are not valid
    UTF-8 become U+FFFD instead of raising.

        >>> percent_decode("hello%20world")
        'hello world'
        >>> percent_decode("a+b")
        'a+b'
    """
    return unquote(text, encoding="utf-8", errors="replace")


def parse_form_data(data: str) -> Dict[str, str]:
    """
    Parse `key=value&...` data into a dict.

    Args:
        data: Query string (without the leading "?") or form body text.

    Returns:
        Mapping of decoded keys to decoded values. A pair without "=" maps
        the key to an empty string. Empty segments ("a=1&&b=2") are skipped.
    """
    params: Dict[str, str] = {}

    for pair in data.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params[percent_decode(key)] = percent_decode(value)

    return params
