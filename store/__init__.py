# Revisioned ScriptDocument store
from drama_engine.adaptation.insights import refresh_insights_in_store

from .document_store import DocumentStore, RevisionConflictError

__all__ = ["DocumentStore", "RevisionConflictError", "refresh_insights_in_store"]
