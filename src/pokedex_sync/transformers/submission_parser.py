"""
Submission parser - turns a contributor's YAML file into a RawContribution.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..constants.submissions import SubmissionDefaults, SubmissionKeys
from ..pipeline.base import MalformedSubmissionError, RawContribution

logger = logging.getLogger(__name__)


class SubmissionParser:
    """
    Parse submission files.

    Relative paths are resolved against ``workspace`` (the checked-out
    repository root) and may not escape it.

    Example:
        parser = SubmissionParser(Path("/repo"))
        raw = parser.parse("submissions/pikachu.yaml")
    """

    def __init__(
        self,
        workspace: Optional[Path] = None,
        default_submitter: str = SubmissionDefaults.ANONYMOUS_SUBMITTER,
    ):
        self.workspace = Path(workspace) if workspace is not None else Path.cwd()
        self.default_submitter = default_submitter
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def resolve_path(self, file_path: Union[str, Path]) -> Path:
        """Absolute location of a submission, confined to the workspace"""
        path = Path(file_path)
        if not path.is_absolute():
            path = self.workspace / path

        resolved = path.resolve()
        root = self.workspace.resolve()
        if resolved != root and root not in resolved.parents:
            raise MalformedSubmissionError(str(file_path), "path points outside the repository")
        return resolved

    def parse(self, file_path: Union[str, Path]) -> RawContribution:
        """
        Load one submission.

        Args:
            file_path: Path of the YAML file, relative to the workspace or absolute

        Returns:
            RawContribution with trimmed name, note and submitter

        Raises:
            MalformedSubmissionError: unreadable file, invalid YAML, or a
                missing/blank ``pokemon_name`` or ``trainer_note``
        """
        label = str(file_path)
        path = self.resolve_path(file_path)

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedSubmissionError(label, f"cannot read file ({e})") from e

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise MalformedSubmissionError(label, f"invalid YAML ({e})") from e

        if not isinstance(document, dict):
            raise MalformedSubmissionError(label, "expected a mapping of keys to values")

        subject_name = self._required(document, SubmissionKeys.POKEMON_NAME, label)
        note = self._required(document, SubmissionKeys.TRAINER_NOTE, label)
        submitter = self._optional(document, SubmissionKeys.SUBMITTED_BY, label)

        self.logger.debug(f"Parsed submission {label}: {subject_name}")

        return RawContribution(
            subject_name=subject_name,
            note=note,
            submitter_name=submitter or self.default_submitter,
            source_path=label,
        )

    def _required(self, document: Dict[str, Any], key: str, label: str) -> str:
        value = self._optional(document, key, label)
        if not value:
            raise MalformedSubmissionError(label, f"missing required field '{key}'")
        return value

    @staticmethod
    def _optional(document: Dict[str, Any], key: str, label: str) -> Optional[str]:
        value = document.get(key)
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            raise MalformedSubmissionError(label, f"field '{key}' must be plain text")
        return str(value).strip()
