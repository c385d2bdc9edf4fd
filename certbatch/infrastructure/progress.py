"""Infrastructure layer for job progress persistence."""
from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Protocol

from certbatch.core.schema import JobState


class ProgressStore(Protocol):
    """Single-slot store: every write replaces the previous state."""

    def write(self, state: JobState) -> None: ...

    def read(self) -> JobState: ...

    def reset(self) -> None: ...


class InMemoryProgressStore:
    """Keeps the latest job state in process memory."""

    def __init__(self) -> None:
        self._state: JobState | None = None
        self._lock = threading.Lock()

    def write(self, state: JobState) -> None:
        with self._lock:
            self._state = state

    def read(self) -> JobState:
        with self._lock:
            return self._state or JobState.idle()

    def reset(self) -> None:
        with self._lock:
            self._state = None


class JsonFileProgressStore:
    """Keeps the latest job state in a JSON file so other processes can poll it."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, state: JobState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_name(self._path.name + ".tmp")
        with self._lock:
            staging.write_text(json.dumps(state.to_payload()), encoding="utf-8")
            os.replace(staging, self._path)

    def read(self) -> JobState:
        with self._lock:
            if not self._path.exists():
                return JobState.idle()
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        return JobState.model_validate(payload)

    def reset(self) -> None:
        self.write(JobState.idle())
