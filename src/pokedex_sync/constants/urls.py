"""
URL and API endpoint constants.

These constants define external URLs and API endpoints used by the
ingestion pipeline.
"""


class ApiUrls:
    """External API base URLs."""

    GITHUB_API = "https://api.github.com"
    POKEAPI = "https://pokeapi.co/api/v2"


class ApiHeaders:
    """Static request headers."""

    GITHUB_ACCEPT = "application/vnd.github.v3+json"
    USER_AGENT = "GitHub-Pokedex-Bot"


class ConfigDefaults:
    """Default configuration values."""

    DEFAULT_TIMEOUT = 30
    DEFAULT_MAX_CONCURRENCY = 4
    # GitHub maximum page size for the pull request files listing
    GITHUB_PER_PAGE = 100
    # GitHub stops listing pull request files after 3000 entries
    GITHUB_MAX_PAGES = 30
