"""Test constants configuration."""

from pokedex_sync.constants.env_keys import EnvKeys
from pokedex_sync.constants.submissions import (
    SPRITE_PATHS,
    DatasetPaths,
    SubmissionDefaults,
    SubmissionKeys,
)
from pokedex_sync.constants.urls import ApiHeaders, ApiUrls, ConfigDefaults


class TestConfigDefaults:
    """Tests for ConfigDefaults constants."""

    def test_timeout_values(self):
        """Timeout values should be reasonable."""
        assert ConfigDefaults.DEFAULT_TIMEOUT == 30

    def test_concurrency_is_positive(self):
        assert ConfigDefaults.DEFAULT_MAX_CONCURRENCY >= 1

    def test_github_paging_limits(self):
        """per_page * max_pages covers GitHub's 3000 file listing limit."""
        assert ConfigDefaults.GITHUB_PER_PAGE == 100
        assert ConfigDefaults.GITHUB_PER_PAGE * ConfigDefaults.GITHUB_MAX_PAGES == 3000


class TestUrls:
    """Tests for API URL constants."""

    def test_base_urls_have_no_trailing_slash(self):
        assert not ApiUrls.GITHUB_API.endswith("/")
        assert not ApiUrls.POKEAPI.endswith("/")

    def test_headers(self):
        assert ApiHeaders.GITHUB_ACCEPT == "application/vnd.github.v3+json"
        assert ApiHeaders.USER_AGENT == "GitHub-Pokedex-Bot"


class TestSubmissionConstants:
    """Tests for submission layout constants."""

    def test_keys(self):
        assert SubmissionKeys.POKEMON_NAME == "pokemon_name"
        assert SubmissionKeys.TRAINER_NOTE == "trainer_note"
        assert SubmissionKeys.SUBMITTED_BY == "submitted_by"

    def test_defaults(self):
        assert SubmissionDefaults.DIRECTORY_PREFIX == "submissions/"
        assert SubmissionDefaults.FILE_EXTENSION == ".yaml"
        assert SubmissionDefaults.ANONYMOUS_SUBMITTER == "Anonymous Trainer"
        assert DatasetPaths.DATA_FILE == "public/data/pokedex_data.json"

    def test_sprite_preference_order(self):
        """Animated Gen V sprite first, plain front_default last."""
        assert SPRITE_PATHS[0][-2:] == ("animated", "front_default")
        assert SPRITE_PATHS[-1] == ("sprites", "front_default")


def test_env_keys_match_their_names():
    for name, value in vars(EnvKeys).items():
        if name.isupper():
            assert name == value
