"""
Parsing stage - loads every submission file of the change set.
"""

from typing import List
from datetime import datetime, timezone

from .base import (
    PipelineStage,
    PipelineResult,
    PipelineContext,
    PipelineMetrics,
    PipelineStatus,
    RawContribution,
)
from ..transformers.submission_parser import SubmissionParser


class ParsingStage(PipelineStage[RawContribution]):
    """
    Parse submission files in change-set order.

    Stops at the first malformed file: a broken submission is a tooling
    problem and has to surface before any catalog lookup is made.
    """

    def __init__(self, parser: SubmissionParser):
        super().__init__("parsing")
        self.parser = parser

    async def process(
        self,
        data: List[str],
        context: PipelineContext
    ) -> PipelineResult[RawContribution]:
        start_time = datetime.now(timezone.utc)
        metrics = PipelineMetrics(records_input=len(data))
        contributions: List[RawContribution] = []

        for path in data:
            try:
                contributions.append(self.parser.parse(path))
                metrics.records_output += 1
            except Exception as e:
                self.logger.error(f"Could not parse {path}: {e}")
                metrics.duration_seconds = (datetime.now(timezone.utc) - start_time).total_seconds()
                result = self._create_result(
                    status=PipelineStatus.FAILED,
                    data=[],
                    context=context,
                    metrics=metrics
                )
                result.add_error(e, record_id=path)
                return result

        metrics.duration_seconds = (datetime.now(timezone.utc) - start_time).total_seconds()
        self.logger.info(
            f"Parsed {metrics.records_output} submissions in {metrics.duration_seconds:.2f}s"
        )

        return self._create_result(
            status=PipelineStatus.SUCCESS,
            data=contributions,
            context=context,
            metrics=metrics
        )
