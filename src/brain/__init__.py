"""Append-only memory log: JSONL storage, deterministic ids, fold."""

from .store import BrainStore, BrainStoreError, MaterializedBrain, deterministic_id, fold_brain

__all__ = [
    "BrainStore",
    "BrainStoreError",
    "MaterializedBrain",
    "deterministic_id",
    "fold_brain",
]
