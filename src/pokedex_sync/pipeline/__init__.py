"""
Submission pipeline for the community Pokedex.

One run takes a pull request through these states:
1. Resolve - list the submission files the pull request added or modified
2. Parse - load every submission (``parse.ParsingStage``)
3. Canonicalize - validate each one against PokeAPI (``canonicalize.CanonicalizationStage``)
4. Merge/Persist - add new entries to the dataset (``storage.StoreManager``)

``orchestrator.PipelineOrchestrator`` sequences the states. Only the shared
base types are re-exported here; sources and transformers depend on them.
"""

from .base import (
    PipelineStage,
    PipelineResult,
    PipelineContext,
    PipelineStatus,
    PipelineError,
    ChangeSetError,
    MalformedSubmissionError,
    SubjectNotFoundError,
    CatalogError,
    SpriteNotFoundError,
    StoreWriteError,
)

__all__ = [
    'PipelineStage',
    'PipelineResult',
    'PipelineContext',
    'PipelineStatus',
    'PipelineError',
    'ChangeSetError',
    'MalformedSubmissionError',
    'SubjectNotFoundError',
    'CatalogError',
    'SpriteNotFoundError',
    'StoreWriteError',
]
