"""Plain-text rendering of log entries.

Produces the short English sentences MediaWiki shows in plain-text contexts
("Alice uploaded File:Cat.png"). Unknown log actions fall back to a generic
sentence so a new extension's log type never blocks a notification.
"""

from __future__ import annotations

from core.models import LogEntry

HIDDEN_USER = "(username removed)"
INDEFINITE_DURATIONS = {"infinite", "indefinite", "infinity", "never"}

_TEMPLATES: dict[tuple[str, str], str] = {
    ("upload", "upload"): "{user} uploaded {title}",
    ("upload", "overwrite"): "{user} uploaded a new version of {title}",
    ("upload", "revert"): "{user} reverted {title} to an old version",
    ("delete", "delete"): "{user} deleted page {title}",
    ("delete", "delete_redir"): "{user} deleted redirect {title} by overwriting",
    ("delete", "restore"): "{user} restored page {title}",
    ("delete", "revision"): "{user} changed visibility of revisions on page {title}",
    ("delete", "event"): "{user} changed visibility of log events on {title}",
    ("move", "move"): "{user} moved page {title} to {target}",
    ("move", "move_redir"): "{user} moved page {title} to {target} over redirect",
    ("protect", "protect"): "{user} protected {title}",
    ("protect", "modify"): "{user} changed protection settings for {title}",
    ("protect", "unprotect"): "{user} removed protection from {title}",
    ("protect", "move_prot"): "{user} moved protection settings from {target} to {title}",
    ("block", "block"): "{user} blocked {target_user} with an expiration time of {duration}",
    ("block", "reblock"): "{user} changed block settings for {target_user} with an expiration time of {duration}",
    ("block", "unblock"): "{user} unblocked {target_user}",
    ("newusers", "create"): "User account {user} was created",
    ("newusers", "autocreate"): "User account {user} was created automatically",
    ("newusers", "create2"): "User account {target_user} was created by {user}",
    ("newusers", "byemail"): "User account {target_user} was created by {user} and password was sent by email",
    ("rights", "rights"): "{user} changed group membership for {target_user}",
    ("merge", "merge"): "{user} merged {title} into {target}",
    ("import", "upload"): "{user} imported {title} by file upload",
    ("import", "interwiki"): "{user} imported {title} from another wiki",
    ("patrol", "patrol"): "{user} marked a revision of page {title} patrolled",
}

_FALLBACK = '{user} performed action "{log_type}/{log_action}" on {title}'


def _display(title: str) -> str:
    return title.replace("_", " ")


def _target(entry: LogEntry) -> str:
    params = entry.params
    for key in ("target_title", "dest_title", "oldtitle_title"):
        if params.get(key):
            return _display(str(params[key]))
    return ""


def _target_user(title: str) -> str:
    # "User:Bob" -> "Bob"
    _, sep, name = title.partition(":")
    return _display(name if sep else title)


def _duration(entry: LogEntry) -> str:
    duration = str(entry.params.get("duration", "")).strip()
    if not duration or duration in INDEFINITE_DURATIONS:
        return "indefinite"
    return duration


class PlainLogFormatter:
    """LogFormatterPort implementation with English action sentences."""

    def plain_action_text(self, entry: LogEntry) -> str:
        template = _TEMPLATES.get((entry.log_type, entry.log_action), _FALLBACK)
        return template.format(
            user=entry.performer or HIDDEN_USER,
            title=_display(entry.title),
            target=_target(entry),
            target_user=_target_user(entry.title),
            duration=_duration(entry),
            log_type=entry.log_type,
            log_action=entry.log_action,
        )
