from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from webconsole.security.allowlist import DEFAULT_ALLOWED_COMMANDS, max_prefix_depth
from webconsole.security.sanitizer import split_fields


@dataclass(slots=True, frozen=True)
class Classification:
    tokens: list[str] = field(default_factory=list)
    base_command: str = ""
    authorized: bool = False


class CommandClassifier:
    """Greedy longest-prefix match of a sanitized command against an allowlist.

    The probe starts at the token count of the deepest allowlist entry and
    walks down to a single token, so "calendar events list --days 7" resolves
    to "calendar events list" rather than its parent "calendar events". Only
    the command name is checked; flags and arguments after the matched prefix
    pass through untouched for the invoked subcommand to validate.
    """

    def __init__(self, allowed_commands: Iterable[str] = DEFAULT_ALLOWED_COMMANDS) -> None:
        normalized = {" ".join(split_fields(entry)) for entry in allowed_commands}
        normalized.discard("")
        self._allowed: frozenset[str] = frozenset(normalized)
        self._depth = max_prefix_depth(self._allowed)

    @property
    def allowed_commands(self) -> frozenset[str]:
        return self._allowed

    @property
    def max_depth(self) -> int:
        return self._depth

    def classify(self, clean: str) -> Classification:
        tokens = split_fields(clean)
        if not tokens:
            return Classification(tokens=[], base_command="", authorized=False)

        for length in range(min(self._depth, len(tokens)), 0, -1):
            candidate = " ".join(tokens[:length])
            if candidate in self._allowed:
                return Classification(tokens=tokens, base_command=candidate, authorized=True)

        return Classification(tokens=tokens, base_command="", authorized=False)


_default_classifier = CommandClassifier()


def classify(clean: str) -> Classification:
    return _default_classifier.classify(clean)
