"""
Pipeline orchestrator - runs one pull request through the whole pipeline.

    START -> RESOLVE_CHANGE_SET -> (no submissions => DONE_NOOP)
          -> PARSE -> CANONICALIZE -> MERGE -> PERSIST -> DONE

Any fatal error moves the run to FATAL. Nothing is written to the dataset
unless every submission of the run made it through CANONICALIZE.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .base import PipelineContext, PipelineError, PipelineResult
from .canonicalize import Canonicalizer, CanonicalizationStage, utc_now
from .parse import ParsingStage
from ..config import ConfigurationError, PipelineConfig
from ..sources.github import ChangeSetResolver
from ..sources.pokeapi import CatalogClient
from ..storage.store_manager import StoreManager
from ..transformers.submission_parser import SubmissionParser

logger = logging.getLogger(__name__)


class RunState(Enum):
    """States of a single pipeline run"""
    START = "start"
    RESOLVE_CHANGE_SET = "resolve_change_set"
    PARSE = "parse"
    CANONICALIZE = "canonicalize"
    MERGE = "merge"
    PERSIST = "persist"
    DONE = "done"
    DONE_NOOP = "done_noop"
    FATAL = "fatal"


@dataclass
class RunOutcome:
    """
    Terminal result of a run.

    ``exit_code`` is what the CLI hands to the automation deciding whether
    the pull request may be merged.
    """
    change_proposal_id: int
    state: RunState = RunState.START
    submissions: List[str] = field(default_factory=list)
    added: int = 0
    skipped: List[str] = field(default_factory=list)
    error: Optional[Exception] = None
    failed_state: Optional[RunState] = None
    dry_run: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.state in (RunState.DONE, RunState.DONE_NOOP)

    @property
    def exit_code(self) -> int:
        if self.success:
            return 0
        return getattr(self.error, "exit_code", 1)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "change_proposal_id": self.change_proposal_id,
            "state": self.state.value,
            "success": self.success,
            "exit_code": self.exit_code,
            "submissions": self.submissions,
            "added": self.added,
            "skipped": self.skipped,
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "failed_state": self.failed_state.value if self.failed_state else None,
            "dry_run": self.dry_run,
            "duration_seconds": self.duration_seconds,
        }


class PipelineOrchestrator:
    """
    Sequence resolver, parser, canonicalizer and store for one pull request.

    Collaborators default to ones built from ``config``; tests pass their
    own (typically sources on an ``httpx.MockTransport``).

    Example:
        orchestrator = PipelineOrchestrator(PipelineConfig.from_env())
        outcome = await orchestrator.run(42)
        sys.exit(outcome.exit_code)
    """

    def __init__(
        self,
        config: PipelineConfig,
        resolver: Optional[ChangeSetResolver] = None,
        catalog: Optional[CatalogClient] = None,
        store: Optional[StoreManager] = None,
        parser: Optional[SubmissionParser] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.resolver = resolver or ChangeSetResolver(
            config.github,
            submissions_prefix=config.store.submissions_prefix,
            submission_extension=config.store.submission_extension,
        )
        self.catalog = catalog or CatalogClient(config.catalog)
        self.store = store or StoreManager(config.store.data_file)
        self.parser = parser or SubmissionParser(
            config.store.workspace,
            default_submitter=config.store.default_submitter,
        )
        self.parsing_stage = ParsingStage(self.parser)
        self.canonicalization_stage = CanonicalizationStage(
            Canonicalizer(self.catalog, clock=clock),
            max_concurrency=config.catalog.max_concurrency,
        )
        self.state = RunState.START
        self.logger = logging.getLogger(__name__)

    def _transition(self, outcome: RunOutcome, state: RunState):
        self.logger.debug(
            f"PR #{outcome.change_proposal_id}: {self.state.value} -> {state.value}",
            extra={"metadata": {"from": self.state.value, "to": state.value}},
        )
        self.state = state
        outcome.state = state

    def _finish(self, outcome: RunOutcome, state: RunState) -> RunOutcome:
        self._transition(outcome, state)
        outcome.completed_at = datetime.now(timezone.utc)
        return outcome

    def _fail(self, outcome: RunOutcome, error: Exception) -> RunOutcome:
        outcome.failed_state = self.state
        outcome.error = error
        outcome.added = 0
        self.logger.error(
            f"PR #{outcome.change_proposal_id} failed during {self.state.value}: {error}",
            extra={"metadata": {"error_type": type(error).__name__}},
        )
        return self._finish(outcome, RunState.FATAL)

    @staticmethod
    def _raise_if_failed(result: PipelineResult) -> None:
        if result.failed:
            error = result.fatal_error
            if error is None:
                error = PipelineError(f"Stage {result.stage_name} failed")
            raise error

    async def run(self, change_proposal_id: int) -> RunOutcome:
        """
        Run the pipeline for one pull request.

        Never raises for pipeline or configuration errors; they come back
        as a FATAL outcome. Unexpected exceptions propagate.
        """
        self.state = RunState.START
        outcome = RunOutcome(change_proposal_id=change_proposal_id, dry_run=self.config.dry_run)

        if isinstance(change_proposal_id, bool) or not isinstance(change_proposal_id, int) \
                or change_proposal_id <= 0:
            return self._fail(
                outcome,
                ConfigurationError(f"Invalid pull request number: {change_proposal_id!r}"),
            )

        context = PipelineContext(
            change_proposal_id=change_proposal_id,
            repository=self.config.github.repository,
            job_id=f"pr-{change_proposal_id}-{uuid.uuid4().hex[:8]}",
        )
        self.logger.info(
            f"Starting Pokedex update for PR #{change_proposal_id} on repo {context.repository}",
            extra={"metadata": {"job_id": context.job_id}},
        )

        try:
            async with self.resolver, self.catalog:
                return await self._run(context, outcome)
        except (PipelineError, ConfigurationError) as e:
            return self._fail(outcome, e)

    async def _run(self, context: PipelineContext, outcome: RunOutcome) -> RunOutcome:
        self._transition(outcome, RunState.RESOLVE_CHANGE_SET)
        submissions = await self.resolver.list_changed_submissions(
            context.change_proposal_id, context.repository
        )
        outcome.submissions = submissions

        if not submissions:
            self.logger.info("No new YAML files found to process.")
            return self._finish(outcome, RunState.DONE_NOOP)

        self._transition(outcome, RunState.PARSE)
        parsed = await self.parsing_stage(submissions, context)
        self._raise_if_failed(parsed)

        self._transition(outcome, RunState.CANONICALIZE)
        canonical = await self.canonicalization_stage(parsed.data, context)
        outcome.skipped = list(context.metadata.get("skipped_subjects", []))
        self._raise_if_failed(canonical)

        self._transition(outcome, RunState.MERGE)
        store = self.store.load()
        before = len(store)
        store, changed = self.store.merge(store, canonical.data)
        outcome.added = len(store) - before

        if not changed:
            self.logger.info("No new entries; dataset left unchanged.")
            return self._finish(outcome, RunState.DONE)

        self._transition(outcome, RunState.PERSIST)
        if self.config.dry_run:
            self.logger.info(f"Dry run: would add {outcome.added} entries to {self.store.data_file}")
        else:
            self.store.persist(store)

        self.logger.info(
            f"PR #{context.change_proposal_id}: added {outcome.added} entries",
            extra={"metadata": {"job_id": context.job_id, "added": outcome.added}},
        )
        return self._finish(outcome, RunState.DONE)
