"""Store key construction."""

import re

_SEPARATOR = "-"
_NON_WORD_RUN = re.compile(r"[\s\W]+")


def normalize(name: str) -> str:
    """Collapse every run of whitespace or non-word characters into a single dash."""
    return _NON_WORD_RUN.sub(_SEPARATOR, name)


def build_key(prefix: str, name: str) -> str:
    """
    Build the store key for a resource.

    Both parts are normalized so cosmetic differences in the name
    (extra spaces, quotes, punctuation) map to the same key.

    Example:
        >>> build_key("exclusive-lock", 'some deployment "name" with spaces')
        'exclusive-lock:some-deployment-name-with-spaces'
    """
    return f"{normalize(prefix)}:{normalize(name)}"
