"""
Canonicalization stage - validates submissions against the catalog.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .base import (
    PipelineStage,
    PipelineResult,
    PipelineContext,
    PipelineMetrics,
    PipelineStatus,
    CanonicalEntry,
    RawContribution,
    SpriteNotFoundError,
    SubjectNotFoundError,
)
from ..sources.pokeapi import CatalogClient

logger = logging.getLogger(__name__)

# Returned by lookups that never ran because the run was already aborting
_ABORTED = object()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Canonicalizer:
    """
    Turn a RawContribution into a CanonicalEntry.

    The id and the sprite come from the catalog, never from the submission.
    """

    def __init__(self, catalog: CatalogClient, clock: Callable[[], datetime] = utc_now):
        self.catalog = catalog
        self.clock = clock

    async def canonicalize(self, raw: RawContribution) -> Optional[CanonicalEntry]:
        """
        Validate one contribution.

        Returns:
            The entry, or None when the Pokemon has no sprite

        Raises:
            SubjectNotFoundError: PokeAPI doesn't know the name; the run must stop
            CatalogError: PokeAPI could not be queried
        """
        subject_name = raw.subject_name.strip()

        try:
            result = await self.catalog.resolve(subject_name)
        except SubjectNotFoundError as e:
            raise SubjectNotFoundError(subject_name, raw.source_path) from e
        except SpriteNotFoundError as e:
            logger.warning(f"{e}. Skipping {raw.source_path or subject_name}.")
            return None

        return CanonicalEntry(
            id=result.catalog_id,
            name=subject_name,
            note=raw.note.strip(),
            sprite_url=result.sprite_url,
            submitted_by=raw.submitter_name,
            created_at=self.clock(),
        )


class CanonicalizationStage(PipelineStage[CanonicalEntry]):
    """
    Canonicalize a batch with at most ``max_concurrency`` lookups in flight.

    The first fatal error stops the batch: lookups that have not started are
    never made, in-flight ones are cancelled, and the stage returns FAILED
    with no data. Output keeps change-set order.
    """

    def __init__(self, canonicalizer: Canonicalizer, max_concurrency: int = 4):
        super().__init__("canonicalization")
        self.canonicalizer = canonicalizer
        self.max_concurrency = max(1, max_concurrency)

    async def process(
        self,
        data: List[RawContribution],
        context: PipelineContext
    ) -> PipelineResult[CanonicalEntry]:
        start_time = datetime.now(timezone.utc)
        metrics = PipelineMetrics(records_input=len(data))
        skipped: List[str] = context.metadata.setdefault("skipped_subjects", [])

        semaphore = asyncio.Semaphore(self.max_concurrency)
        aborted = asyncio.Event()

        async def lookup(raw: RawContribution):
            async with semaphore:
                if aborted.is_set():
                    return _ABORTED
                try:
                    return await self.canonicalizer.canonicalize(raw)
                except Exception:
                    # set before the semaphore is released so queued lookups see it
                    aborted.set()
                    raise

        tasks = [asyncio.ensure_future(lookup(raw)) for raw in data]
        if tasks:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in pending:
                task.cancel()
            # join everything before anyone touches the store
            await asyncio.gather(*pending, return_exceptions=True)

        entries: List[CanonicalEntry] = []
        first_error: Optional[BaseException] = None
        failed_record: Optional[str] = None

        for raw, task in zip(data, tasks):
            if task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                if first_error is None:
                    first_error = error
                    failed_record = raw.source_path or raw.subject_name
                continue
            value = task.result()
            if value is _ABORTED:
                continue
            if value is None:
                metrics.records_skipped += 1
                skipped.append(raw.subject_name.strip())
                metrics.warnings.append(f"No sprite for {raw.subject_name.strip()}; skipped")
                continue
            entries.append(value)

        metrics.duration_seconds = (datetime.now(timezone.utc) - start_time).total_seconds()

        if first_error is not None:
            self.logger.error(f"Canonicalization aborted at {failed_record}: {first_error}")
            result = self._create_result(
                status=PipelineStatus.FAILED,
                data=[],
                context=context,
                metrics=metrics
            )
            result.add_error(first_error, record_id=failed_record)
            return result

        metrics.records_output = len(entries)
        self.logger.info(
            f"Canonicalized {metrics.records_output} submissions, "
            f"{metrics.records_skipped} skipped, {metrics.duration_seconds:.2f}s"
        )

        return self._create_result(
            status=PipelineStatus.PARTIAL_SUCCESS if metrics.records_skipped else PipelineStatus.SUCCESS,
            data=entries,
            context=context,
            metrics=metrics
        )
