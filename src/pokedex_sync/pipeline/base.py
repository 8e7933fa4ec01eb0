"""
Base classes and interfaces for the submission pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Generic, TypeVar
from datetime import datetime, timezone
from enum import Enum
import logging

logger = logging.getLogger(__name__)

T = TypeVar('T')


class PipelineStatus(Enum):
    """Pipeline stage execution status"""
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


# =============================================================================
# Errors
# =============================================================================


class PipelineError(Exception):
    """Base exception for pipeline errors.

    ``fatal`` errors abort the whole run without persisting anything;
    non-fatal ones only drop the submission that raised them.
    """

    fatal = True
    exit_code = 1


class ChangeSetError(PipelineError):
    """The pull request file listing could not be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedSubmissionError(PipelineError):
    """A submission file is unreadable or lacks a required field."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed submission {path}: {reason}")
        self.path = path
        self.reason = reason


class SubjectNotFoundError(PipelineError):
    """The catalog has no Pokemon by the submitted name."""

    def __init__(self, subject_name: str, source_path: Optional[str] = None):
        location = f" (in {source_path})" if source_path else ""
        super().__init__(
            f"Pokemon '{subject_name}' was not found in PokeAPI{location}. "
            "Please check the spelling and resubmit."
        )
        self.subject_name = subject_name
        self.source_path = source_path


class CatalogError(PipelineError):
    """The catalog could not be queried or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SpriteNotFoundError(PipelineError):
    """The Pokemon exists but none of the sprite paths yields a URL."""

    fatal = False

    def __init__(self, subject_name: str, catalog_id: int):
        super().__init__(f"No sprite available for {subject_name} (ID: {catalog_id})")
        self.subject_name = subject_name
        self.catalog_id = catalog_id


class StoreWriteError(PipelineError):
    """The canonical dataset could not be replaced."""


# =============================================================================
# Pipeline plumbing
# =============================================================================


@dataclass
class PipelineMetrics:
    """Metrics collected during pipeline execution"""
    records_input: int = 0
    records_output: int = 0
    records_skipped: int = 0
    records_failed: int = 0
    duration_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PipelineContext:
    """Context passed between pipeline stages"""
    change_proposal_id: int
    repository: str
    job_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class PipelineResult(Generic[T]):
    """Result from a pipeline stage"""
    status: PipelineStatus
    data: List[T]
    context: PipelineContext
    metrics: PipelineMetrics
    stage_name: str
    errors: List[Exception] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if pipeline stage was successful"""
        return self.status in [PipelineStatus.SUCCESS, PipelineStatus.PARTIAL_SUCCESS]

    @property
    def failed(self) -> bool:
        """Check if pipeline stage failed"""
        return self.status == PipelineStatus.FAILED

    @property
    def fatal_error(self) -> Optional[Exception]:
        """First error that must abort the run, if any"""
        for error in self.errors:
            if getattr(error, "fatal", True):
                return error
        return None

    def add_error(self, error: Exception, record_id: Optional[str] = None):
        """Add an error to the result"""
        self.errors.append(error)
        self.metrics.errors.append(f"{record_id or 'Unknown'}: {str(error)}")
        self.metrics.records_failed += 1


class PipelineStage(ABC, Generic[T]):
    """
    Abstract base class for pipeline stages.

    Each stage should:
    1. Accept input data
    2. Process it according to stage logic
    3. Return a PipelineResult with output data

    A stage never raises for a fatal condition; it returns a FAILED result
    carrying the error so the orchestrator decides what happens next.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    @abstractmethod
    async def process(
        self,
        data: List[Any],
        context: PipelineContext
    ) -> PipelineResult[T]:
        """
        Process data through this pipeline stage.

        Args:
            data: Input data from previous stage
            context: Pipeline context with metadata

        Returns:
            PipelineResult with processed data and metrics
        """
        pass

    def _create_result(
        self,
        status: PipelineStatus,
        data: List[T],
        context: PipelineContext,
        metrics: Optional[PipelineMetrics] = None
    ) -> PipelineResult[T]:
        """Helper to create a PipelineResult"""
        if metrics is None:
            metrics = PipelineMetrics()

        return PipelineResult(
            status=status,
            data=data,
            context=context,
            metrics=metrics,
            stage_name=self.name
        )

    async def __call__(
        self,
        data: List[Any],
        context: PipelineContext
    ) -> PipelineResult[T]:
        """Allow stage to be called as a function"""
        return await self.process(data, context)


# =============================================================================
# Records
# =============================================================================


class ChangeKind(Enum):
    """How a pull request touched a file"""
    ADDED = "added"
    MODIFIED = "modified"
    OTHER = "other"

    @classmethod
    def from_status(cls, status: Optional[str]) -> "ChangeKind":
        """Map a GitHub file ``status`` onto a change kind"""
        if status == "added":
            return cls.ADDED
        if status == "modified":
            return cls.MODIFIED
        return cls.OTHER


@dataclass
class ChangeSetEntry:
    """A file touched by the pull request"""
    path: str
    change_kind: ChangeKind


@dataclass
class RawContribution:
    """A contributor's submission as read from YAML (before catalog validation)"""
    subject_name: str
    note: str
    submitter_name: str
    source_path: Optional[str] = None


@dataclass
class CatalogResult:
    """What the catalog says about a Pokemon"""
    catalog_id: int
    catalog_name: str
    sprite_url: str


@dataclass
class CanonicalEntry:
    """A validated, catalog-backed Pokedex entry ready for the dataset.

    ``name`` is the submitted name with surrounding whitespace trimmed; casing
    is kept as typed.
    """
    id: int
    name: str
    note: str
    sprite_url: str
    submitted_by: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def timestamp(self) -> str:
        """``created_at`` as ISO-8601 UTC with millisecond precision"""
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        created = created.astimezone(timezone.utc)
        return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dataset's wire format"""
        return {
            "id": self.id,
            "name": self.name,
            "note": self.note,
            "sprite": self.sprite_url,
            "submitted_by": self.submitted_by,
            "timestamp": self.timestamp,
        }


@dataclass
class CanonicalStore:
    """The dataset as an ordered list of records.

    Records are kept as plain mappings so fields written by other tools
    survive a rewrite.
    """
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def ids(self) -> List[Any]:
        """``id`` of every record, None where a record has none"""
        return [entry.get("id") for entry in self.entries]
