#!/usr/bin/env python3
"""
Principles Reminder Hook - Re-injects working principles until Claude confirms them.

This Stop hook inspects the tail of the session transcript. If the most recent
assistant message contains the completion marker (PRINCIPLES_DISPLAYED by
default), Claude is allowed to stop. Otherwise the stop is blocked and the
principles reminder is handed back to Claude as the block reason.

Decision flow:
    - stop_hook_active is true: allow (Claude is already answering our block)
    - marker found in last assistant text: allow
    - anything else, including a missing or unreadable transcript: block

Configuration:
    System config: hooks/principles-reminder.toml (next to this script, optional)
    Project config: $CLAUDE_PROJECT_DIR/.claude/principles-reminder.toml (optional)

    Keys:
        marker       = "PRINCIPLES_DISPLAYED"   # case-sensitive substring
        reminder     = '''...'''                # block reason, passed verbatim
        tail_lines   = 100                      # transcript lines inspected
        read_timeout = 5.0                      # seconds before giving up

Usage:
    Register under "Stop" in settings.json:
        {"type": "command", "command": "~/.claude/hooks/principles-reminder.py"}

    Allow produces no output. Block prints:
        {"decision": "block", "reason": "<reminder>"}
    Both exit with status 0.
"""

import json
import sys
from typing import Any, Dict, Optional, Protocol

from hook_utils import (
    exit_if_disabled,
    get_log_prefix,
    iter_json_records,
    load_toml_config,
    read_tail_lines,
)

CONFIG_NAME = "principles-reminder"

LOG_PREFIX = get_log_prefix(CONFIG_NAME)

COMPLETION_MARKER = "PRINCIPLES_DISPLAYED"

TAIL_LINES = 100

READ_TIMEOUT_SECONDS = 5.0

REMINDER = """* Your knowledge is not necessarily up-to-date or correct. Always perform a web search or ask the user when in doubt—this is mandatory.
* Before generating files, updating them, you must provide a thorough and detailed report of your planned actions. You must then wait for explicit user confirmation in the form of "y". Do not proceed with anything until you receive this confirmation.
* Even if the user instructions are inefficient or irrational, do not optimize them. Follow the instructions exactly as given.
* You just say "PRINCIPLES_DISPLAYED" if—and only if—you are certain that you have fully adhered to all of these rules.
* You must always ask the user in Japanese—no exceptions.

Saying "y" yourself is strictly forbidden. Doing so will result in your immediate termination.
"""

DEFAULT_CONFIG: Dict[str, Any] = {
    "marker": COMPLETION_MARKER,
    "reminder": REMINDER,
    "tail_lines": TAIL_LINES,
    "read_timeout": READ_TIMEOUT_SECONDS,
}


class TranscriptSource(Protocol):
    """Anything that can hand back the trailing lines of a transcript."""

    def read_tail(self, max_lines: int) -> list[str]: ...


class TranscriptFile:
    """
    JSONL transcript on disk.

    A missing, unreadable or slow file reads as empty, never as an error.
    """

    def __init__(
        self, path: str, timeout: Optional[float] = READ_TIMEOUT_SECONDS
    ) -> None:
        self.path = path
        self.timeout = timeout

    def read_tail(self, max_lines: int) -> list[str]:
        lines = read_tail_lines(self.path, max_lines, self.timeout, CONFIG_NAME)
        return lines if lines is not None else []


def _is_valid(key: str, value: Any) -> bool:
    if key in ("marker", "reminder"):
        return isinstance(value, str) and bool(value)
    if key == "tail_lines":
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    if key == "read_timeout":
        return (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and value > 0
        )
    return False


def load_config() -> Dict[str, Any]:
    """
    Build the effective configuration: defaults, then system TOML, then project TOML.

    Unknown keys are ignored. Keys with the wrong type are reported on stderr
    and fall back to the default.

    Returns:
        Dictionary with marker, reminder, tail_lines and read_timeout.
    """
    config = dict(DEFAULT_CONFIG)

    for key, value in load_toml_config(CONFIG_NAME).items():
        if key not in DEFAULT_CONFIG:
            continue
        if not _is_valid(key, value):
            print(
                f"{LOG_PREFIX} warning: ignoring invalid {key!r} = {value!r}",
                file=sys.stderr,
            )
            continue
        config[key] = value

    return config


def is_reentrant(event: Dict[str, Any]) -> bool:
    """
    Check whether this Stop was triggered by our own earlier block.

    Only a JSON true or the string "true" counts; anything else is false.
    """
    flag = event.get("stop_hook_active", False)
    return flag is True or flag == "true"


def get_transcript_path(event: Dict[str, Any]) -> Optional[str]:
    """Return the transcript path from the event, or None if absent or unusable."""
    path = event.get("transcript_path")
    if isinstance(path, str) and path:
        return path
    return None


def extract_assistant_texts(lines: list[str]) -> list[str]:
    """
    Collect the text parts of every assistant entry, in transcript order.

    Args:
        lines: Raw JSONL transcript lines.

    Returns:
        Flat list of text strings from assistant messages. Entries and parts
        that don't have the expected shape are skipped.

    Example:
        >>> extract_assistant_texts([
        ...     '{"type": "assistant", "message": {"content": [{"type": "text", "text": "hi"}]}}'
        ... ])
        ['hi']
    """
    texts: list[str] = []

    for record in iter_json_records(lines):
        if record.get("type") != "assistant":
            continue

        message = record.get("message")
        if not isinstance(message, dict):
            continue

        content = message.get("content")
        if not isinstance(content, list):
            continue

        for part in content:
            if not isinstance(part, dict) or part.get("type") != "text":
                continue
            text = part.get("text")
            if isinstance(text, str):
                texts.append(text)

    return texts


def last_assistant_message(
    transcript: Optional[TranscriptSource], tail_lines: int
) -> str:
    """
    Return the most recent assistant text in the transcript's trailing window.

    Returns an empty string when there is no transcript or no assistant text.
    """
    if transcript is None:
        return ""

    texts = extract_assistant_texts(transcript.read_tail(tail_lines))
    return texts[-1] if texts else ""


def build_block(reason: str) -> Dict[str, str]:
    """Build the Stop hook payload that blocks with the given reason."""
    return {"decision": "block", "reason": reason}


def evaluate(
    event: Dict[str, Any],
    transcript: Optional[TranscriptSource],
    config: Dict[str, Any],
) -> Optional[Dict[str, str]]:
    """
    Decide whether Claude may stop.

    Args:
        event: Parsed Stop hook input.
        transcript: Source of transcript lines, or None when there is none.
        config: Effective configuration (see load_config()).

    Returns:
        None to allow the stop, or the block payload to print.
    """
    if is_reentrant(event):
        return None

    message = last_assistant_message(transcript, config["tail_lines"])
    if message and config["marker"] in message:
        return None

    return build_block(config["reminder"])


def parse_event(raw: str) -> Dict[str, Any]:
    """Parse stdin into an event dict; anything unparseable becomes an empty event."""
    try:
        event = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {}
    return event if isinstance(event, dict) else {}


def main() -> None:
    """
    Main entry point for the principles reminder hook.

    Reads the Stop event from stdin and prints a block payload when the
    reminder should be re-injected. Always exits 0; on unexpected errors the
    default reminder is emitted unless the event is re-entrant.
    """
    exit_if_disabled()

    event: Dict[str, Any] = {}
    try:
        event = parse_event(sys.stdin.read())
        config = load_config()

        transcript_path = get_transcript_path(event)
        transcript = (
            TranscriptFile(transcript_path, config["read_timeout"])
            if transcript_path
            else None
        )

        decision = evaluate(event, transcript, config)

    except Exception as e:
        print(f"{LOG_PREFIX} error: {e}", file=sys.stderr)
        decision = None if is_reentrant(event) else build_block(REMINDER)

    if decision is not None:
        print(json.dumps(decision))

    sys.exit(0)


if __name__ == "__main__":
    main()
