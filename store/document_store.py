"""
document_store.py — Revisioned ScriptDocument store (snapshot + history).

Layout under <base_dir>/<doc_id>/:

    ScriptDocument.json     ← current revision (always latest)
    history/
        0001.json           ← immutable once written; one per revision
        0002.json
        ...

Every write happens under a per-document lock and bumps ``revision`` by one.
``save`` is a compare-and-swap on the revision the caller last read;
``update`` re-reads the current revision inside the lock and applies a merge
function to it, so two writers can never silently overwrite each other.
"""

from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from drama_engine.adaptation.models import ScriptDocument

from .document_io import read_document, write_document

logger = logging.getLogger(__name__)

_CURRENT = "ScriptDocument.json"


class RevisionConflictError(Exception):
    """The stored revision moved on since the caller read the document."""

    def __init__(self, doc_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"document '{doc_id}' is at revision {actual}, expected {expected}"
        )
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual


class DocumentStore:
    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir)
        # One lock per id touched, kept for the store's lifetime.
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _check_id(doc_id: str) -> str:
        if doc_id in ("", ".", "..") or "/" in doc_id or "\\" in doc_id:
            raise ValueError(f"invalid document id {doc_id!r}")
        return doc_id

    def _doc_dir(self, doc_id: str) -> Path:
        return self.base_dir / self._check_id(doc_id)

    def _current_path(self, doc_id: str) -> Path:
        return self._doc_dir(doc_id) / _CURRENT

    def _history_path(self, doc_id: str, revision: int) -> Path:
        return self._doc_dir(doc_id) / "history" / f"{revision:04d}.json"

    def _lock(self, doc_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(self._check_id(doc_id), threading.Lock())

    def _write_revision(self, doc_id: str, document: ScriptDocument, revision: int) -> ScriptDocument:
        """History entry first, then the current snapshot.

        A crash between the two leaves the new revision in history, from which
        the snapshot can be restored.
        """
        stamped = document.model_copy(update={"revision": revision})
        history_path = self._history_path(doc_id, revision)
        history_path.parent.mkdir(parents=True, exist_ok=True)
        if history_path.exists():
            raise FileExistsError(
                f"History entry already exists for revision={revision} "
                f"of document '{doc_id}': {history_path}"
            )
        write_document(history_path, stamped)
        write_document(self._current_path(doc_id), stamped)
        logger.debug("wrote %s revision %d", doc_id, revision)
        return stamped

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def exists(self, doc_id: str) -> bool:
        return self._current_path(doc_id).exists()

    def load(self, doc_id: str) -> ScriptDocument:
        """Load the current revision of *doc_id*.

        Raises:
            FileNotFoundError: If no such document exists.
        """
        path = self._current_path(doc_id)
        if not path.exists():
            raise FileNotFoundError(f"No ScriptDocument found for '{doc_id}' at {path}")
        return read_document(path)

    def load_revision(self, doc_id: str, revision: int) -> ScriptDocument:
        path = self._history_path(doc_id, revision)
        if not path.exists():
            raise FileNotFoundError(f"No revision {revision} for '{doc_id}' at {path}")
        return read_document(path)

    def current_revision(self, doc_id: str) -> int:
        return self.load(doc_id).revision if self.exists(doc_id) else 0

    def create(self, document: ScriptDocument, doc_id: Optional[str] = None) -> str:
        """Persist *document* as revision 1 of a new id and return the id.

        Raises:
            FileExistsError: If *doc_id* is already taken.
            ValueError: If *doc_id* contains a path separator.
        """
        doc_id = doc_id or uuid.uuid4().hex[:12]
        with self._lock(doc_id):
            if self.exists(doc_id):
                raise FileExistsError(f"Document '{doc_id}' already exists")
            self._write_revision(doc_id, document, 1)
        return doc_id

    def save(self, doc_id: str, document: ScriptDocument, *, expected_revision: int) -> ScriptDocument:
        """Compare-and-swap write.

        Raises:
            RevisionConflictError: If the stored revision is not *expected_revision*.
        """
        with self._lock(doc_id):
            actual = self.current_revision(doc_id)
            if actual != expected_revision:
                raise RevisionConflictError(doc_id, expected_revision, actual)
            return self._write_revision(doc_id, document, actual + 1)

    def update(self, doc_id: str, fn: Callable[[ScriptDocument], ScriptDocument]) -> ScriptDocument:
        """Apply *fn* to the current revision and store the result.

        *fn* runs under the document lock; keep model calls outside it.
        """
        with self._lock(doc_id):
            current = self.load(doc_id)
            return self._write_revision(doc_id, fn(current), current.revision + 1)
