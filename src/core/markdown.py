"""Discord markdown escaping for free-text fields."""

from __future__ import annotations

import re

_ESCAPED = re.compile(r"\\([*_`~\\])")
_SPECIAL = re.compile(r"([*_`~\\])")


def escape_markdown(text: str) -> str:
    """Backslash-escape ``* _ ` ~ \\`` in ``text``.

    Already-escaped characters are unescaped first, so the output is stable:
    ``escape_markdown(escape_markdown(x)) == escape_markdown(x)``.
    """

    return _SPECIAL.sub(r"\\\1", _ESCAPED.sub(r"\1", text))
