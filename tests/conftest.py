"""Pytest configuration for claude-code-hooks tests."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Add hooks directory to path for imports - must happen before pytest collects
hooks_dir = Path(__file__).parent.parent / "hooks"
if str(hooks_dir) not in sys.path:
    sys.path.insert(0, str(hooks_dir))


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_project(monkeypatch):
    """Keep tests from picking up a real project's disabled-hooks or TOML config."""
    monkeypatch.delenv("CLAUDE_PROJECT_DIR", raising=False)


@pytest.fixture
def mock_stdin(monkeypatch):
    """
    Mock sys.stdin.read to return JSON data.

    Usage:
        def test_example(mock_stdin):
            mock_stdin({"stop_hook_active": False, "transcript_path": "/tmp/t.jsonl"})
            # Test code that reads from stdin

    Pass a str to feed raw (possibly malformed) input.
    """

    def _mock(data: Any) -> None:
        raw = data if isinstance(data, str) else json.dumps(data)
        monkeypatch.setattr('sys.stdin.read', lambda: raw)

    return _mock


@pytest.fixture
def mock_env(monkeypatch):
    """
    Mock environment variables.

    Usage:
        def test_example(mock_env):
            mock_env({"CLAUDE_PROJECT_DIR": "/tmp/project"})
            # Test code that uses os.environ
    """

    def _mock(env_vars: Dict[str, str]) -> None:
        for k, v in env_vars.items():
            monkeypatch.setenv(k, v)

    return _mock


@pytest.fixture
def temp_project_dir(tmp_path):
    """
    Create a temporary project directory with .claude subdirectory.

    Usage:
        def test_example(temp_project_dir):
            # temp_project_dir is a Path object with .claude/ already created
            (temp_project_dir / ".claude" / "disabled-hooks").write_text("hook-name\n")
    """
    claude_dir = tmp_path / '.claude'
    claude_dir.mkdir()
    return tmp_path


def assistant_entry(*texts: str) -> Dict[str, Any]:
    """Build a transcript entry for an assistant message with text parts."""
    return {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [{"type": "text", "text": t} for t in texts],
        },
    }


def user_entry(text: str) -> Dict[str, Any]:
    """Build a transcript entry for a user message."""
    return {"type": "user", "message": {"role": "user", "content": text}}


@pytest.fixture
def write_transcript(tmp_path):
    """
    Write a JSONL transcript and return its path as a string.

    Usage:
        def test_example(write_transcript):
            path = write_transcript([assistant_entry("done")])

    Entries that are already strings are written as-is (for malformed lines).
    """

    def _write(entries: List[Any], name: str = "transcript.jsonl") -> str:
        path = tmp_path / name
        lines = [e if isinstance(e, str) else json.dumps(e) for e in entries]
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return str(path)

    return _write
