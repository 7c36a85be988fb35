from __future__ import annotations

from typing import Protocol

from webconsole.config import Settings
from webconsole.errors import ExecutableResolutionError
from webconsole.execution.composer import ExecResponse, compose_failure, compose_rejection, compose_result
from webconsole.execution.engine import execute, resolve_executable
from webconsole.observability.logging import get_logger
from webconsole.security.classifier import CommandClassifier
from webconsole.security.sanitizer import sanitize

logger = get_logger("runner")


class CommandRunner(Protocol):
    async def run(self, command: str) -> ExecResponse: ...


class SandboxedCommandRunner:
    """Authorizes a raw command string and runs the trusted CLI with it."""

    def __init__(self, settings: Settings, classifier: CommandClassifier | None = None) -> None:
        self._settings = settings
        self._classifier = classifier or CommandClassifier()

    @property
    def classifier(self) -> CommandClassifier:
        return self._classifier

    async def run(self, command: str) -> ExecResponse:
        sanitized = sanitize(command)
        if not sanitized.ok:
            logger.info("command_rejected reason=%s", sanitized.reason)
            return compose_rejection(sanitized.reason)

        classification = self._classifier.classify(sanitized.command)
        if not classification.authorized:
            logger.info("command_rejected reason=not_allowlisted")
            return compose_rejection(sanitized.command)

        try:
            executable = resolve_executable(self._settings)
        except ExecutableResolutionError as exc:
            logger.error("executable_resolution_failed error=%s", exc)
            return compose_failure(str(exc))

        logger.info(
            "command_authorized base_command=%s args=%d fallback=%s",
            classification.base_command,
            len(classification.tokens),
            executable.via_fallback,
        )
        result = await execute(classification.tokens, executable.path, self._settings.exec_timeout)
        return compose_result(result)


_DEMO_OUTPUTS: dict[str, str] = {
    "email list": """Demo Mode - Sample Emails

  * o  alice@example.com       Weekly Team Sync - Agenda        2 min ago
    o  bob@work.com            Project Update: Q4 Goals         15 min ago
  *    calendar@example.com    Reminder: Design Review          1 hour ago
       support@example.com     Welcome!                         1 day ago

Showing 4 of 127 messages""",
    "email threads": """Demo Mode - Sample Threads

  * o  Team Weekly Standup     5 messages    alice, bob, carol    2 min ago
    o  Project Planning Q1     12 messages   team@company.org     1 hour ago
       Onboarding Docs         2 messages    hr@company.org       1 day ago

Showing 3 threads""",
    "calendar list": """Demo Mode - Sample Calendars

  ID                     NAME                 PRIMARY
  cal-primary-001        Work Calendar        yes
  cal-personal-002       Personal
  cal-team-003           Team Events

3 calendars found""",
    "calendar events": """Demo Mode - Sample Events

  TODAY
  09:00 - 10:00   Team Standup                  Conference Room A
  14:00 - 15:00   Design Review                 Video call

2 upcoming events""",
    "auth status": """Demo Mode - Authentication Status

  Status:     Configured
  Region:     US
  Client ID:  demo-client-id

  Default Account: alice@example.com (Google)""",
    "auth list": """Demo Mode - Connected Accounts

  alice@example.com    Google      demo-grant-001 (default)
  bob@work.com         Microsoft   demo-grant-002

2 accounts connected""",
    "version": "version dev (demo mode)",
}


class DemoCommandRunner:
    """Canned output for demos. Never authorizes or spawns anything."""

    async def run(self, command: str) -> ExecResponse:
        return ExecResponse(output=demo_output(command))


def demo_output(command: str) -> str:
    normalized = command.strip()
    tokens = normalized.split()
    if not tokens:
        return "Demo mode - no command specified"

    key = " ".join(tokens[:2])
    canned = _DEMO_OUTPUTS.get(key)
    if canned is not None:
        return canned
    return (
        f"Demo Mode - Command: {normalized}\n\n"
        "(This is sample output. Log in with the CLI to see real data.)"
    )


def build_runner(settings: Settings, classifier: CommandClassifier | None = None) -> CommandRunner:
    if settings.demo_mode:
        return DemoCommandRunner()
    return SandboxedCommandRunner(settings, classifier)
