from __future__ import annotations

from collections.abc import Iterable

from webconsole.security.sanitizer import split_fields

# Prefixes of 1-3 tokens. A request is authorized when its leading tokens
# match an entry; trailing flags and arguments are not inspected here.
DEFAULT_ALLOWED_COMMANDS: frozenset[str] = frozenset(
    {
        # auth
        "auth login",
        "auth logout",
        "auth status",
        "auth whoami",
        "auth list",
        "auth show",
        "auth switch",
        "auth add",
        "auth remove",
        "auth revoke",
        "auth config",
        "auth providers",
        "auth detect",
        "auth scopes",
        "auth token",
        "auth migrate",
        # email
        "email list",
        "email read",
        "email send",
        "email search",
        "email delete",
        "email mark",
        "email drafts",
        "email folders",
        "email threads",
        "email scheduled",
        "email attachments",
        "email metadata",
        "email tracking-info",
        "email ai",
        "email smart-compose",
        # email folders
        "email folders list",
        "email folders show",
        "email folders create",
        "email folders rename",
        "email folders delete",
        # email drafts
        "email drafts list",
        "email drafts show",
        "email drafts create",
        "email drafts delete",
        "email drafts send",
        # email threads
        "email threads list",
        "email threads show",
        "email threads search",
        "email threads delete",
        "email threads mark",
        # email scheduled
        "email scheduled list",
        "email scheduled show",
        "email scheduled cancel",
        # email attachments
        "email attachments list",
        "email attachments show",
        "email attachments download",
        # calendar
        "calendar list",
        "calendar show",
        "calendar create",
        "calendar update",
        "calendar delete",
        "calendar events",
        "calendar availability",
        "calendar find-time",
        "calendar recurring",
        "calendar schedule",
        "calendar virtual",
        "calendar ai",
        # calendar events
        "calendar events list",
        "calendar events show",
        "calendar events create",
        "calendar events update",
        "calendar events delete",
        "calendar events rsvp",
        # calendar availability
        "calendar availability check",
        "calendar availability find",
        # contacts
        "contacts list",
        "contacts show",
        "contacts create",
        "contacts update",
        "contacts delete",
        "contacts groups",
        "contacts search",
        "contacts photo",
        "contacts sync",
        # contacts groups
        "contacts groups list",
        "contacts groups show",
        "contacts groups create",
        "contacts groups delete",
        # inbound
        "inbound list",
        "inbound show",
        "inbound create",
        "inbound delete",
        "inbound messages",
        "inbound monitor",
        # scheduler
        "scheduler configurations",
        "scheduler sessions",
        "scheduler bookings",
        "scheduler pages",
        # scheduler configurations
        "scheduler configurations list",
        "scheduler configurations show",
        "scheduler configurations create",
        "scheduler configurations update",
        "scheduler configurations delete",
        # scheduler sessions
        "scheduler sessions list",
        "scheduler sessions show",
        "scheduler sessions create",
        "scheduler sessions delete",
        # scheduler bookings
        "scheduler bookings list",
        "scheduler bookings show",
        "scheduler bookings create",
        "scheduler bookings confirm",
        "scheduler bookings cancel",
        "scheduler bookings delete",
        # scheduler pages
        "scheduler pages list",
        "scheduler pages show",
        "scheduler pages create",
        "scheduler pages update",
        "scheduler pages delete",
        # timezone (offline)
        "timezone list",
        "timezone info",
        "timezone convert",
        "timezone find-meeting",
        "timezone dst",
        # webhook
        "webhook list",
        "webhook show",
        "webhook create",
        "webhook update",
        "webhook delete",
        "webhook triggers",
        "webhook test",
        "webhook server",
        # otp
        "otp get",
        "otp watch",
        "otp list",
        "otp messages",
        # admin
        "admin applications",
        "admin connectors",
        "admin credentials",
        "admin grants",
        # admin applications
        "admin applications list",
        "admin applications show",
        # admin connectors
        "admin connectors list",
        "admin connectors show",
        "admin connectors create",
        "admin connectors update",
        "admin connectors delete",
        # admin credentials
        "admin credentials list",
        "admin credentials show",
        "admin credentials create",
        "admin credentials delete",
        # admin grants
        "admin grants list",
        "admin grants show",
        "admin grants delete",
        # notetaker
        "notetaker list",
        "notetaker show",
        "notetaker create",
        "notetaker delete",
        "notetaker media",
        # misc
        "version",
    }
)


def command_families(allowed_commands: Iterable[str]) -> list[str]:
    return sorted({split_fields(entry)[0] for entry in allowed_commands if split_fields(entry)})


def max_prefix_depth(allowed_commands: Iterable[str]) -> int:
    return max((len(split_fields(entry)) for entry in allowed_commands), default=0)
