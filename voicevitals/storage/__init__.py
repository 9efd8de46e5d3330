"""Artifact storage for VoiceVitals."""

from .artifact_store import ArtifactStore

__all__ = ["ArtifactStore"]
