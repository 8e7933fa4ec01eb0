"""
GitHub change-set resolver.

Lists the files a pull request touched and picks out the submissions.
"""

from typing import List, Optional

import httpx

from ..config import GitHubConfig
from ..constants.submissions import SubmissionDefaults
from ..constants.urls import ApiHeaders
from ..pipeline.base import ChangeKind, ChangeSetEntry, ChangeSetError
from ..transformers.field_extractor import get_nested
from .base_source import BaseSource, SourceConfig


class ChangeSetResolver(BaseSource):
    """
    Resolve the submission files of a pull request.

    Example:
        async with ChangeSetResolver(GitHubConfig.from_env()) as resolver:
            paths = await resolver.list_changed_submissions(42)
    """

    def __init__(
        self,
        github_config: GitHubConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        submissions_prefix: str = SubmissionDefaults.DIRECTORY_PREFIX,
        submission_extension: str = SubmissionDefaults.FILE_EXTENSION,
    ):
        self.github_config = github_config
        self.submissions_prefix = submissions_prefix
        self.submission_extension = submission_extension
        super().__init__(transport=transport)

    def _create_default_config(self) -> SourceConfig:
        return SourceConfig(
            name="GitHub",
            base_url=self.github_config.api_base_url.rstrip("/"),
            timeout=self.github_config.timeout,
            headers={
                "Authorization": f"Bearer {self.github_config.token}",
                "Accept": ApiHeaders.GITHUB_ACCEPT,
                "User-Agent": self.github_config.user_agent,
            },
        )

    def files_url(self, change_proposal_id: int, repository: str) -> str:
        return f"{self.config.base_url}/repos/{repository}/pulls/{change_proposal_id}/files"

    async def list_change_set(
        self, change_proposal_id: int, repository: Optional[str] = None
    ) -> List[ChangeSetEntry]:
        """
        Every file the pull request touched, in the order GitHub lists them.

        Follows ``Link: rel="next"`` pagination up to ``max_pages`` pages.

        Raises:
            ChangeSetError: If any page cannot be fetched or decoded
        """
        repository = repository or self.github_config.repository
        url: Optional[str] = self.files_url(change_proposal_id, repository)
        params: Optional[dict] = {"per_page": self.github_config.per_page}
        entries: List[ChangeSetEntry] = []
        pages = 0

        while url and pages < self.github_config.max_pages:
            try:
                response = await self._make_request(url, params=params)
            except httpx.RequestError as e:
                raise ChangeSetError(f"Failed to fetch PR files: {e}") from e

            if not response.is_success:
                raise ChangeSetError(
                    f"Failed to fetch PR files: {response.status_code} {response.reason_phrase}",
                    status_code=response.status_code,
                )

            try:
                files = response.json()
            except ValueError as e:
                raise ChangeSetError("Failed to fetch PR files: response is not JSON") from e

            if not isinstance(files, list):
                raise ChangeSetError("Failed to fetch PR files: expected a JSON array")

            for item in files:
                path = get_nested(item, ["filename"])
                if not isinstance(path, str):
                    continue
                status = get_nested(item, ["status"])
                entries.append(
                    ChangeSetEntry(
                        path=path,
                        change_kind=ChangeKind.from_status(status if isinstance(status, str) else None),
                    )
                )

            pages += 1
            # the next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        if url:
            self.logger.warning(
                f"Stopped listing PR #{change_proposal_id} files after {pages} pages"
            )

        return entries

    def is_submission(self, entry: ChangeSetEntry) -> bool:
        """Added or modified YAML file inside the submissions directory"""
        return (
            entry.change_kind in (ChangeKind.ADDED, ChangeKind.MODIFIED)
            and entry.path.startswith(self.submissions_prefix)
            and entry.path.endswith(self.submission_extension)
        )

    async def list_changed_submissions(
        self, change_proposal_id: int, repository: Optional[str] = None
    ) -> List[str]:
        """
        Paths of the submission files added or modified by the pull request.

        Args:
            change_proposal_id: Pull request number
            repository: ``owner/name``; defaults to the configured repository

        Returns:
            Submission paths in API order
        """
        entries = await self.list_change_set(change_proposal_id, repository)
        submissions = [entry.path for entry in entries if self.is_submission(entry)]
        self.logger.info(
            f"PR #{change_proposal_id} touches {len(entries)} files, "
            f"{len(submissions)} of them submissions"
        )
        return submissions
