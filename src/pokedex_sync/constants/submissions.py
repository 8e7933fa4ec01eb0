"""
Submission and dataset layout constants.
"""

from typing import Tuple


class SubmissionKeys:
    """Keys of a contributor's YAML submission file."""

    POKEMON_NAME = "pokemon_name"
    TRAINER_NOTE = "trainer_note"
    SUBMITTED_BY = "submitted_by"


class SubmissionDefaults:
    """Where submissions live and what they fall back to."""

    DIRECTORY_PREFIX = "submissions/"
    FILE_EXTENSION = ".yaml"
    ANONYMOUS_SUBMITTER = "Anonymous Trainer"


class DatasetPaths:
    """Canonical dataset location relative to the repository root."""

    DATA_FILE = "public/data/pokedex_data.json"


# Ordered most preferred first
SPRITE_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("sprites", "versions", "generation-v", "black-white", "animated", "front_default"),
    ("sprites", "other", "showdown", "front_default"),
    ("sprites", "front_default"),
)
