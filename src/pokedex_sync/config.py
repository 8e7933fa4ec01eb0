"""
Configuration for the Pokedex submission pipeline
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .constants.env_keys import EnvKeys
from .constants.submissions import SPRITE_PATHS, DatasetPaths, SubmissionDefaults
from .constants.urls import ApiHeaders, ApiUrls, ConfigDefaults

load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing."""

    fatal = True
    exit_code = 2


def _int_from_env(key: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")
    return value


@dataclass
class GitHubConfig:
    """GitHub API configuration.

    Attributes:
        token: Bearer credential for the pull request files listing
        repository: ``owner/name`` of the repository receiving submissions
        api_base_url: GitHub REST API root

    Required environment variables:
        - GITHUB_TOKEN
        - GITHUB_REPOSITORY
    """

    token: str
    repository: str
    api_base_url: str = ApiUrls.GITHUB_API
    user_agent: str = ApiHeaders.USER_AGENT
    per_page: int = ConfigDefaults.GITHUB_PER_PAGE
    max_pages: int = ConfigDefaults.GITHUB_MAX_PAGES
    timeout: int = ConfigDefaults.DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, require_credentials: bool = True) -> "GitHubConfig":
        """Load configuration from environment variables.

        Raises:
            ConfigurationError: When required env vars are missing and
                require_credentials is True
        """
        token = os.getenv(EnvKeys.GITHUB_TOKEN)
        repository = os.getenv(EnvKeys.GITHUB_REPOSITORY)

        if require_credentials:
            missing = []
            if not token:
                missing.append(EnvKeys.GITHUB_TOKEN)
            if not repository:
                missing.append(EnvKeys.GITHUB_REPOSITORY)

            if missing:
                raise ConfigurationError(
                    f"Missing required environment variables: {', '.join(missing)}. "
                    "Please set these in your .env file or environment."
                )

            if repository.count("/") != 1 or not all(repository.split("/")):
                raise ConfigurationError(
                    f"{EnvKeys.GITHUB_REPOSITORY} must look like 'owner/name', got {repository!r}"
                )

        return cls(
            token=token or "",
            repository=repository or "",
            api_base_url=os.getenv(EnvKeys.GITHUB_API_URL) or ApiUrls.GITHUB_API,
            timeout=_int_from_env(EnvKeys.HTTP_TIMEOUT, ConfigDefaults.DEFAULT_TIMEOUT),
        )


@dataclass
class CatalogConfig:
    """PokeAPI catalog configuration."""

    base_url: str = ApiUrls.POKEAPI
    max_concurrency: int = ConfigDefaults.DEFAULT_MAX_CONCURRENCY
    timeout: int = ConfigDefaults.DEFAULT_TIMEOUT
    user_agent: str = ApiHeaders.USER_AGENT
    sprite_paths: Tuple[Tuple[str, ...], ...] = SPRITE_PATHS

    @classmethod
    def from_env(cls) -> "CatalogConfig":
        return cls(
            base_url=os.getenv(EnvKeys.POKEAPI_BASE_URL) or ApiUrls.POKEAPI,
            max_concurrency=_int_from_env(
                EnvKeys.POKEDEX_MAX_CONCURRENCY, ConfigDefaults.DEFAULT_MAX_CONCURRENCY
            ),
            timeout=_int_from_env(EnvKeys.HTTP_TIMEOUT, ConfigDefaults.DEFAULT_TIMEOUT),
        )


@dataclass
class StoreConfig:
    """Where submissions are read from and the dataset is written to.

    ``workspace`` is the checked-out repository root; submission paths
    reported by GitHub are relative to it.
    """

    workspace: Path = field(default_factory=Path.cwd)
    data_file: Optional[Path] = None
    submissions_prefix: str = SubmissionDefaults.DIRECTORY_PREFIX
    submission_extension: str = SubmissionDefaults.FILE_EXTENSION
    default_submitter: str = SubmissionDefaults.ANONYMOUS_SUBMITTER

    def __post_init__(self):
        self.workspace = Path(self.workspace)
        if self.data_file is None:
            self.data_file = self.workspace / DatasetPaths.DATA_FILE
        else:
            self.data_file = Path(self.data_file)
            if not self.data_file.is_absolute():
                self.data_file = self.workspace / self.data_file

    @classmethod
    def from_env(cls, workspace: Optional[Path] = None) -> "StoreConfig":
        if workspace is None:
            env_workspace = os.getenv(EnvKeys.POKEDEX_WORKSPACE)
            workspace = Path(env_workspace) if env_workspace else Path.cwd()
        data_file = os.getenv(EnvKeys.POKEDEX_DATA_FILE)
        return cls(workspace=workspace, data_file=Path(data_file) if data_file else None)


@dataclass
class PipelineConfig:
    """Overall pipeline configuration.

    Example:
        # Standard usage - requires env vars
        config = PipelineConfig.from_env()

        # For tests - doesn't require env vars
        config = PipelineConfig.for_testing(workspace=tmp_path)
    """

    github: GitHubConfig
    catalog: CatalogConfig
    store: StoreConfig
    dry_run: bool = False

    @classmethod
    def from_env(
        cls, workspace: Optional[Path] = None, dry_run: bool = False
    ) -> "PipelineConfig":
        """Create configuration from environment.

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        return cls(
            github=GitHubConfig.from_env(),
            catalog=CatalogConfig.from_env(),
            store=StoreConfig.from_env(workspace),
            dry_run=dry_run,
        )

    @classmethod
    def for_testing(
        cls,
        workspace: Path,
        repository: str = "octo/pokedex",
        token: str = "test-token",
        max_concurrency: int = 1,
        dry_run: bool = False,
    ) -> "PipelineConfig":
        """Create configuration for testing without requiring env vars."""
        return cls(
            github=GitHubConfig(token=token, repository=repository),
            catalog=CatalogConfig(max_concurrency=max_concurrency),
            store=StoreConfig(workspace=workspace),
            dry_run=dry_run,
        )

    def to_serializable_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary"""
        return {
            "github": {
                "repository": self.github.repository,
                "api_base_url": self.github.api_base_url,
                "has_token": bool(self.github.token),
                # Don't include the token itself
            },
            "catalog": {
                "base_url": self.catalog.base_url,
                "max_concurrency": self.catalog.max_concurrency,
                "timeout": self.catalog.timeout,
                "sprite_paths": ["/".join(path) for path in self.catalog.sprite_paths],
            },
            "store": {
                "workspace": str(self.store.workspace),
                "data_file": str(self.store.data_file),
                "submissions_prefix": self.store.submissions_prefix,
                "submission_extension": self.store.submission_extension,
            },
            "dry_run": self.dry_run,
        }

