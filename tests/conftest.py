"""
Pytest fixtures for the Pokedex pipeline tests.

Provides an in-memory stand-in for the GitHub and PokeAPI HTTP APIs, a
temporary repository checkout, and orchestrators wired to both.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

from pokedex_sync.config import PipelineConfig
from pokedex_sync.pipeline.orchestrator import PipelineOrchestrator
from pokedex_sync.sources.github import ChangeSetResolver
from pokedex_sync.sources.pokeapi import CatalogClient

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

PIKACHU_SPRITE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
    "versions/generation-v/black-white/animated/25.gif"
)
BULBASAUR_SPRITE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
    "versions/generation-v/black-white/animated/1.gif"
)
CHARMANDER_SPRITE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
    "versions/generation-v/black-white/animated/4.gif"
)


def pokemon_payload(
    pokemon_id: int,
    name: str,
    animated: Optional[str] = None,
    front_default: Optional[str] = None,
) -> Dict[str, Any]:
    """Trimmed-down PokeAPI /pokemon/{name} response."""
    return {
        "id": pokemon_id,
        "name": name,
        "sprites": {
            "front_default": front_default,
            "other": {"showdown": {"front_default": None}},
            "versions": {
                "generation-v": {
                    "black-white": {
                        "animated": {"front_default": animated},
                        "front_default": None,
                    }
                }
            },
        },
    }


class FakeAPI:
    """
    Routes httpx requests for GitHub and PokeAPI.

    ``pokemon`` maps lowercase names to payloads (unknown names 404),
    ``pr_files`` maps pull request numbers to the file listing.
    """

    def __init__(self):
        self.pokemon: Dict[str, Any] = {}
        self.pr_files: Dict[int, List[Dict[str, Any]]] = {}
        self.github_status = 200
        self.pokeapi_status: Optional[int] = None
        self.requests: List[httpx.Request] = []

    def add_pokemon(self, pokemon_id: int, name: str, **sprites):
        self.pokemon[name] = pokemon_payload(pokemon_id, name, **sprites)

    def set_pr_files(self, number: int, files: List[Dict[str, Any]]):
        self.pr_files[number] = files

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "pokeapi.co":
            if self.pokeapi_status is not None:
                return httpx.Response(self.pokeapi_status, text="Service Unavailable")
            name = request.url.path.rsplit("/", 1)[-1]
            if name in self.pokemon:
                return httpx.Response(200, json=self.pokemon[name])
            return httpx.Response(404, text="Not Found")

        if request.url.host == "api.github.com":
            if self.github_status != 200:
                return httpx.Response(self.github_status, json={"message": "Bad credentials"})
            number = int(request.url.path.split("/")[-2])
            return httpx.Response(200, json=self.pr_files.get(number, []))

        return httpx.Response(500, text="unexpected host")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def catalog_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "pokeapi.co"]

    def github_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.github.com"]


def pr_file(filename: str, status: str = "added") -> Dict[str, Any]:
    """One entry of GitHub's pull request files listing."""
    return {"filename": filename, "status": status, "additions": 3, "deletions": 0}


def write_submission(workspace: Path, filename: str, content: str) -> str:
    """Write a submission under ``submissions/`` and return its repo path."""
    relative = f"submissions/{filename}"
    path = workspace / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return relative


@pytest.fixture
def fake_api():
    """GitHub + PokeAPI stand-in knowing Pikachu, Bulbasaur and Charmander."""
    api = FakeAPI()
    api.add_pokemon(25, "pikachu", animated=PIKACHU_SPRITE)
    api.add_pokemon(1, "bulbasaur", animated=BULBASAUR_SPRITE)
    api.add_pokemon(4, "charmander", animated=CHARMANDER_SPRITE)
    return api


@pytest.fixture
def workspace(tmp_path):
    """Empty repository checkout."""
    (tmp_path / "submissions").mkdir()
    (tmp_path / "public" / "data").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def data_file(workspace):
    return workspace / "public" / "data" / "pokedex_data.json"


@pytest.fixture
def make_orchestrator(workspace, fake_api):
    """Factory for orchestrators talking to ``fake_api``."""

    def factory(max_concurrency: int = 1, dry_run: bool = False) -> PipelineOrchestrator:
        config = PipelineConfig.for_testing(
            workspace, max_concurrency=max_concurrency, dry_run=dry_run
        )
        return PipelineOrchestrator(
            config,
            resolver=ChangeSetResolver(config.github, transport=fake_api.transport),
            catalog=CatalogClient(config.catalog, transport=fake_api.transport),
            clock=lambda: FIXED_NOW,
        )

    return factory
