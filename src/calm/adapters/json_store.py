"""JSON-file document store adapter."""

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path

from .memory_store import MemoryDocumentStore, _collections

logger = logging.getLogger(__name__)


class JsonDocumentStore(MemoryDocumentStore):
    """
    Document store persisted to a single JSON file.

    Implements DocumentStore protocol. Several processes (the bot, a focus
    session, one-off commands) may share the file: every call takes an
    advisory lock on a sibling ``.lock`` file and reloads the database, and
    mutations rewrite it via a temp file and an atomic rename before the lock
    is released.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.lock_path = self.path.with_suffix(self.path.suffix + ".lock")
        super().__init__()
        # Fail early on a corrupt file
        with self._session():
            pass

    @contextmanager
    def _session(self, write: bool = False):
        with self._lock, open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX if write else fcntl.LOCK_SH)
            try:
                self._data = _collections(self._load())
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt data file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Corrupt data file {self.path}: expected an object")
        return data

    def _persist(self, data: dict[str, dict[str, dict]]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True))
            os.replace(tmp, self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {self.path}")
