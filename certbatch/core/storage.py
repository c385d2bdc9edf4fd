from __future__ import annotations

import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

ARCHIVE_NAME = "certificates.zip"
MERGED_NAME = "certificates.pdf"
PARTIAL_SUFFIX = ".partial"

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def ensure_output_root(root: Path) -> Path:
    """Ensure the output folder and its scratch area exist and return the root."""

    root.mkdir(parents=True, exist_ok=True)
    (root / "tmp").mkdir(exist_ok=True)
    return root


def safe_filename(name: str, fallback: str = "certificate") -> str:
    cleaned = _UNSAFE_CHARS.sub("_", name).strip(" .")
    return cleaned or fallback


@contextmanager
def spooled_file(root: Path, content: bytes, suffix: str = ".pdf") -> Iterator[Path]:
    """Persist ``content`` to a scratch file for the duration of the block."""

    scratch = ensure_output_root(root) / "tmp"
    fd, name = tempfile.mkstemp(dir=scratch, prefix="temp_", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as buffer:
            buffer.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)


class ArtifactStore:
    """Locates the single downloadable artifact of the latest batch."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    @property
    def archive_path(self) -> Path:
        return self._root / ARCHIVE_NAME

    @property
    def merged_path(self) -> Path:
        return self._root / MERGED_NAME

    def reserve_partial(self, target: Path) -> Path:
        """Create an empty staging file for ``target``, unique to the caller."""

        fd, name = tempfile.mkstemp(
            dir=ensure_output_root(self._root),
            prefix=f"{target.stem}_",
            suffix=f"{target.suffix}{PARTIAL_SUFFIX}",
        )
        os.close(fd)
        return Path(name)

    def current(self) -> Path | None:
        for candidate in (self.archive_path, self.merged_path):
            if candidate.is_file():
                return candidate
        return None

    def discard(self) -> None:
        """Remove finished artifacts left by an earlier batch.

        Staging files belong to the sinks that reserved them and are left alone.
        """

        for target in (self.archive_path, self.merged_path):
            target.unlink(missing_ok=True)

    @staticmethod
    def publish(partial: Path, target: Path) -> Path:
        os.replace(partial, target)
        return target
