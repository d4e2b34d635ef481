"""Flat-file stores for priority records and artifacts."""

from .artifact_store import ArtifactFormatError, ArtifactStore
from .priority_store import PriorityRecordError, PriorityStore

__all__ = ["ArtifactFormatError", "ArtifactStore", "PriorityRecordError", "PriorityStore"]
