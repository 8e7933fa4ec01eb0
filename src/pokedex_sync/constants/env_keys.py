"""
Environment variable key constants.

These constants provide a single source of truth for all environment
variable keys used throughout the application.
"""


class EnvKeys:
    """Environment variable key names."""

    # GitHub (set by the Actions runner)
    GITHUB_TOKEN = "GITHUB_TOKEN"
    GITHUB_REPOSITORY = "GITHUB_REPOSITORY"
    GITHUB_API_URL = "GITHUB_API_URL"

    # Catalog
    POKEAPI_BASE_URL = "POKEAPI_BASE_URL"
    POKEDEX_MAX_CONCURRENCY = "POKEDEX_MAX_CONCURRENCY"
    HTTP_TIMEOUT = "HTTP_TIMEOUT"

    # Dataset location
    POKEDEX_WORKSPACE = "POKEDEX_WORKSPACE"
    POKEDEX_DATA_FILE = "POKEDEX_DATA_FILE"

    # Application configuration
    LOG_LEVEL = "LOG_LEVEL"
