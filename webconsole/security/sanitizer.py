from __future__ import annotations

import re
from dataclasses import dataclass

# Whitespace as the CLI's own argument splitter sees it. Unlike str.split(),
# the \x1c-\x1f separators are not part of it.
WHITESPACE = "\t\n\v\f\r \x85\xa0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000"
_WHITESPACE_RUN = re.compile(f"[{re.escape(WHITESPACE)}]+")

# The engine never spawns a shell, so these cannot inject anything today.
# They are still rejected outright, before tokenization.
DANGEROUS_CHARACTERS = (";", "|", "&", "`", "$", "(", ")", "<", ">", "\\", "\n", "\x00")

REASON_EMPTY = "empty command"
REASON_DANGEROUS = "contains dangerous characters"


@dataclass(slots=True, frozen=True)
class SanitizeResult:
    command: str
    ok: bool
    reason: str = ""


def contains_dangerous_characters(value: str) -> bool:
    return any(char in value for char in DANGEROUS_CHARACTERS)


def split_fields(value: str) -> list[str]:
    return [field for field in _WHITESPACE_RUN.split(value) if field]


def sanitize(raw: str) -> SanitizeResult:
    normalized = raw.strip(WHITESPACE)
    if normalized == "":
        return SanitizeResult(command="", ok=False, reason=REASON_EMPTY)
    if contains_dangerous_characters(normalized):
        return SanitizeResult(command=normalized, ok=False, reason=REASON_DANGEROUS)
    return SanitizeResult(command=normalized, ok=True)
