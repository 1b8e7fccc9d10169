# src/runtime/commands.py — v1
"""Workflow file commands: step outputs, saved state and secret masking.

Outputs and state are appended to the files named by GITHUB_OUTPUT and
GITHUB_STATE using the heredoc form, so values may contain newlines.
"""

from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path

from tiercache.logging.logger import escape_command_data

logger = logging.getLogger(__name__)


def format_file_command(name: str, value: str) -> str:
    """Render one ``name<<delimiter`` entry for a file command."""
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError("Unexpected input: name or value contains the delimiter")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def append_file_command(path: Path, name: str, value: str) -> None:
    """Append a name/value entry to a runner command file."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(format_file_command(name, value))


def set_output(name: str, value: object, output_file: Path | None) -> None:
    """Set a step output ('true'/'false' for booleans)."""
    text = _stringify(value)
    if output_file is None:
        logger.info("Output %s=%s", name, text)
        return
    append_file_command(output_file, name, text)


def mask_secret(value: str) -> None:
    """Ask the runner to redact value from all subsequent log output."""
    if value:
        sys.stdout.write(f"::add-mask::{escape_command_data(value)}\n")
        sys.stdout.flush()


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
