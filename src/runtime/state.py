# src/runtime/state.py — v1
"""State handed from the restore step to the save step.

Inputs are re-evaluated before the post (save) step runs, so the values the
save step needs are captured here once and read back verbatim. The schema is
fixed by StateKey; each key is written at most once per invocation.

Written through the GITHUB_STATE file command; the runner exposes them to
the save step as STATE_<name> environment variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from tiercache.runtime.commands import append_file_command, mask_secret

logger = logging.getLogger(__name__)


class StateKey(str, Enum):
    """Fixed state names shared with the save step."""

    PRIMARY_KEY = "primary-key"
    MATCHED_KEY = "matched-key"
    ACCESS_KEY = "access-key"
    SECRET_KEY = "secret-key"
    SESSION_TOKEN = "session-token"


SECRET_STATE_KEYS = frozenset(
    {StateKey.ACCESS_KEY, StateKey.SECRET_KEY, StateKey.SESSION_TOKEN}
)

_CREDENTIAL_STATE_KEYS = {
    "access_key": StateKey.ACCESS_KEY,
    "secret_key": StateKey.SECRET_KEY,
    "session_token": StateKey.SESSION_TOKEN,
}


class StateAlreadyWritten(Exception):
    """A state key was written twice in one invocation."""


class SavedState(BaseModel):
    """State as read back by the save step."""

    primary_key: str = ""
    matched_key: str = ""
    access_key: str = ""
    secret_key: str = ""
    session_token: str = ""


class StateStore:
    """Write-once key-value store for save-step state.

    Args:
        state_file: GITHUB_STATE path. When None, values are only kept
            in memory (local runs and tests).
    """

    def __init__(self, state_file: Path | None = None) -> None:
        self._state_file = state_file
        self._values: dict[StateKey, str] = {}

    def save(self, key: StateKey, value: str) -> None:
        """Persist one value.

        Raises:
            StateAlreadyWritten: If key was already saved.
        """
        if key in self._values:
            raise StateAlreadyWritten(f"State '{key.value}' already written")
        if key in SECRET_STATE_KEYS:
            mask_secret(value)
        self._values[key] = value
        if self._state_file is not None:
            append_file_command(self._state_file, key.value, value)
        if key not in SECRET_STATE_KEYS:
            logger.debug("Saved state %s=%s", key.value, value)

    def save_request(self, primary_key: str, credentials: Mapping[str, str]) -> None:
        """Persist the primary key and credential snapshot."""
        self.save(StateKey.PRIMARY_KEY, primary_key)
        for name, state_key in _CREDENTIAL_STATE_KEYS.items():
            self.save(state_key, credentials.get(name, ""))

    def get(self, key: StateKey) -> str | None:
        return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def snapshot(self) -> dict[str, str]:
        """Values written so far, by state name."""
        return {k.value: v for k, v in self._values.items()}


def state_env_name(key: StateKey) -> str:
    return f"STATE_{key.value}"


def read_saved_state(environ: Mapping[str, str] | None = None) -> SavedState:
    """Read the state written by the restore step (save step entry point)."""
    env = os.environ if environ is None else environ
    return SavedState(
        **{
            key.name.lower(): env.get(state_env_name(key), "")
            for key in StateKey
        }
    )
