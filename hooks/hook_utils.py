#!/usr/bin/env python3
"""
Shared utilities for Claude Code hooks.

This module provides common functionality for hook scripts including:
- Hook name detection and per-project disabling
- Layered TOML configuration loading
- Bounded reads of the trailing lines of a file
- Tolerant JSON Lines parsing for session transcripts
"""

import json
import os
import sys
import threading
import tomllib
from collections import deque
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any


def get_hook_name() -> str:
    """
    Return the calling hook script's filename without the .py extension.

    Example:
        If the calling script is 'principles-reminder.py',
        returns 'principles-reminder'.
    """
    return Path(sys.argv[0]).stem


def get_log_prefix(hook_name: str | None = None) -> str:
    """
    Return the prefix used for a hook's stderr diagnostics.

    Example:
        get_log_prefix("principles-reminder")  # "principles_reminder"
    """
    if hook_name is None:
        hook_name = get_hook_name()
    return hook_name.replace("-", "_")


def is_hook_disabled(hook_name: str | None = None) -> bool:
    """
    Check if a hook is disabled via the .claude/disabled-hooks file.

    The file lives at $CLAUDE_PROJECT_DIR/.claude/disabled-hooks and lists one
    hook name (without .py) per line. Blank lines and lines starting with #
    are ignored.

    Args:
        hook_name: The name of the hook to check. If None, uses get_hook_name().

    Returns:
        True if the hook is disabled, False otherwise (including when the
        file is missing or unreadable).
    """
    if hook_name is None:
        hook_name = get_hook_name()

    project_dir = os.environ.get("CLAUDE_PROJECT_DIR")
    if not project_dir:
        return False

    disabled_hooks_file = Path(project_dir) / ".claude" / "disabled-hooks"
    if not disabled_hooks_file.is_file():
        return False

    try:
        with disabled_hooks_file.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if line == hook_name:
                    return True
        return False

    except OSError:
        return False


def exit_if_disabled(hook_name: str | None = None) -> None:
    """
    Exit the hook script with status 0 if the hook is disabled.

    Returns normally otherwise, so this can sit at the top of main().
    """
    if is_hook_disabled(hook_name):
        sys.exit(0)


def load_toml_config(name: str) -> dict[str, Any]:
    """
    Load and merge a hook's TOML configuration from system and project files.

    The system file sits next to the hook scripts (hooks/<name>.toml); the
    project file lives at $CLAUDE_PROJECT_DIR/.claude/<name>.toml. Keys in the
    project file replace keys from the system file.

    A malformed or unreadable file is reported on stderr and skipped.

    Args:
        name: Config basename, usually the hook name.

    Returns:
        Merged configuration dictionary (empty if no file could be loaded).

    Example:
        # .claude/principles-reminder.toml contains: marker = "DONE"
        load_toml_config("principles-reminder")  # {"marker": "DONE"}
    """
    config: dict[str, Any] = {}

    candidates = [Path(__file__).resolve().parent / f"{name}.toml"]
    project_dir = os.environ.get("CLAUDE_PROJECT_DIR")
    if project_dir:
        candidates.append(Path(project_dir) / ".claude" / f"{name}.toml")

    for toml_path in candidates:
        if not toml_path.is_file():
            continue
        try:
            with open(toml_path, "rb") as f:
                config.update(tomllib.load(f))
        except (tomllib.TOMLDecodeError, OSError) as e:
            print(
                f"{get_log_prefix(name)} warning: could not load {toml_path} - {e}",
                file=sys.stderr,
            )

    return config


def read_tail_lines(
    file_path: str,
    max_lines: int,
    timeout: float | None = None,
    hook_name: str | None = None,
) -> list[str] | None:
    """
    Read the last lines of a file without holding the whole file in memory.

    The file is streamed through a bounded deque on a daemon thread so a
    stalled filesystem cannot hang the hook past ``timeout`` seconds.

    Args:
        file_path: Path to the file to read.
        max_lines: Maximum number of trailing lines to return.
        timeout: Seconds to wait for the read, or None to wait indefinitely.
        hook_name: Hook to name in the timeout warning. If None, uses
            get_hook_name().

    Returns:
        The trailing lines (line endings stripped), or None if the file is
        missing, unreadable, or the read timed out.
    """
    if max_lines <= 0:
        return []

    result: dict[str, list[str]] = {}

    def _read() -> None:
        try:
            with open(file_path, encoding="utf-8", errors="replace") as f:
                tail = deque(f, maxlen=max_lines)
            result["lines"] = [line.rstrip("\r\n") for line in tail]
        except (OSError, ValueError):
            # Missing or unreadable
            pass

    worker = threading.Thread(target=_read, daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        print(
            f"{get_log_prefix(hook_name)} warning: timed out reading {file_path}",
            file=sys.stderr,
        )
        return None

    return result.get("lines")


def iter_json_records(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """
    Yield JSON objects from JSON Lines text, skipping anything malformed.

    Blank lines, invalid JSON and non-object values (arrays, strings, ...)
    are dropped.
    """
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(record, dict):
            yield record
