"""Tests for the parsing and canonicalization stages."""

import asyncio

import pytest

from conftest import (
    BULBASAUR_SPRITE,
    FIXED_NOW,
    PIKACHU_SPRITE,
    write_submission,
)
from pokedex_sync.config import CatalogConfig
from pokedex_sync.pipeline.base import (
    CatalogError,
    CatalogResult,
    MalformedSubmissionError,
    PipelineContext,
    PipelineStatus,
    RawContribution,
    SpriteNotFoundError,
    SubjectNotFoundError,
)
from pokedex_sync.pipeline.canonicalize import Canonicalizer, CanonicalizationStage
from pokedex_sync.pipeline.parse import ParsingStage
from pokedex_sync.sources.pokeapi import CatalogClient
from pokedex_sync.transformers.submission_parser import SubmissionParser


@pytest.fixture
def context():
    return PipelineContext(change_proposal_id=7, repository="octo/pokedex")


@pytest.fixture
def catalog(fake_api):
    return CatalogClient(CatalogConfig(), transport=fake_api.transport)


def raw(name, note="Seen in the wild", submitter="Ash", path=None):
    return RawContribution(
        subject_name=name,
        note=note,
        submitter_name=submitter,
        source_path=path or f"submissions/{name.strip().lower()}.yaml",
    )


class StubCatalog:
    """Catalog stand-in with per-name delays, for ordering tests."""

    def __init__(self, results, delays=None):
        self.results = results
        self.delays = delays or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve(self, subject_name):
        self.calls.append(subject_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(subject_name, 0))
            outcome = self.results[subject_name]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


class TestCanonicalizer:
    """Tests for Canonicalizer.canonicalize()."""

    @pytest.mark.asyncio
    async def test_builds_entry_from_catalog(self, catalog):
        canonicalizer = Canonicalizer(catalog, clock=lambda: FIXED_NOW)

        async with catalog:
            entry = await canonicalizer.canonicalize(raw("  Pikachu ", note=" Caught at Viridian Forest "))

        assert entry.id == 25
        assert entry.name == "Pikachu"
        assert entry.note == "Caught at Viridian Forest"
        assert entry.sprite_url == PIKACHU_SPRITE
        assert entry.submitted_by == "Ash"
        assert entry.timestamp == "2024-05-01T12:00:00.000Z"

    @pytest.mark.asyncio
    async def test_preserves_submitted_casing(self, catalog):
        async with catalog:
            entry = await Canonicalizer(catalog).canonicalize(raw("BULBASAUR"))

        assert entry.name == "BULBASAUR"
        assert entry.sprite_url == BULBASAUR_SPRITE

    @pytest.mark.asyncio
    async def test_unknown_name_carries_source_path(self, catalog):
        async with catalog:
            with pytest.raises(SubjectNotFoundError) as exc_info:
                await Canonicalizer(catalog).canonicalize(raw("Pikachuu", path="submissions/pika.yaml"))

        assert exc_info.value.subject_name == "Pikachuu"
        assert exc_info.value.source_path == "submissions/pika.yaml"
        assert "submissions/pika.yaml" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_sprite_returns_none(self, catalog, fake_api):
        fake_api.add_pokemon(10000, "missingno")

        async with catalog:
            assert await Canonicalizer(catalog).canonicalize(raw("MissingNo")) is None

    @pytest.mark.asyncio
    async def test_catalog_outage_propagates(self, catalog, fake_api):
        fake_api.pokeapi_status = 503

        async with catalog:
            with pytest.raises(CatalogError):
                await Canonicalizer(catalog).canonicalize(raw("Pikachu"))


class TestCanonicalizationStage:
    """Tests for CanonicalizationStage.process()."""

    @pytest.mark.asyncio
    async def test_keeps_change_set_order_under_concurrency(self, context):
        stub = StubCatalog(
            {
                "slowpoke": CatalogResult(79, "slowpoke", "https://img/79.gif"),
                "jolteon": CatalogResult(135, "jolteon", "https://img/135.gif"),
                "abra": CatalogResult(63, "abra", "https://img/63.gif"),
            },
            delays={"slowpoke": 0.05, "jolteon": 0.01},
        )
        stage = CanonicalizationStage(Canonicalizer(stub), max_concurrency=3)

        result = await stage(
            [raw("slowpoke"), raw("jolteon"), raw("abra")], context
        )

        assert result.status == PipelineStatus.SUCCESS
        assert [e.id for e in result.data] == [79, 135, 63]
        assert stub.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_respects_concurrency_limit(self, context):
        names = [f"mon{i}" for i in range(6)]
        stub = StubCatalog(
            {n: CatalogResult(i + 1, n, f"https://img/{i}.gif") for i, n in enumerate(names)},
            delays={n: 0.01 for n in names},
        )
        stage = CanonicalizationStage(Canonicalizer(stub), max_concurrency=2)

        result = await stage([raw(n) for n in names], context)

        assert len(result.data) == 6
        assert stub.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_skipped_subjects_recorded(self, context, catalog, fake_api):
        fake_api.add_pokemon(10000, "missingno")
        stage = CanonicalizationStage(Canonicalizer(catalog), max_concurrency=1)

        async with catalog:
            result = await stage([raw("Pikachu"), raw("MissingNo")], context)

        assert result.status == PipelineStatus.PARTIAL_SUCCESS
        assert [e.name for e in result.data] == ["Pikachu"]
        assert context.metadata["skipped_subjects"] == ["MissingNo"]
        assert result.metrics.records_skipped == 1

    @pytest.mark.asyncio
    async def test_fatal_error_stops_remaining_lookups(self, context, catalog, fake_api):
        stage = CanonicalizationStage(Canonicalizer(catalog), max_concurrency=1)

        async with catalog:
            result = await stage(
                [raw("Pikachu"), raw("Pikachuu"), raw("Bulbasaur")], context
            )

        assert result.failed
        assert result.data == []
        assert isinstance(result.fatal_error, SubjectNotFoundError)
        requested = [r.url.path.rsplit("/", 1)[-1] for r in fake_api.catalog_requests()]
        assert requested == ["pikachu", "pikachuu"]

    @pytest.mark.asyncio
    async def test_failing_lookup_cancels_slower_earlier_one(self, context):
        stub = StubCatalog(
            {
                "ditto": SubjectNotFoundError("ditto"),
                "eevee": CatalogError("PokeAPI returned HTTP 500", status_code=500),
            },
            delays={"ditto": 0.05},
        )
        stage = CanonicalizationStage(Canonicalizer(stub), max_concurrency=2)

        result = await stage([raw("ditto"), raw("eevee")], context)

        assert result.failed
        assert isinstance(result.fatal_error, CatalogError)

    @pytest.mark.asyncio
    async def test_in_flight_lookups_are_cancelled(self, context):
        stub = StubCatalog(
            {
                "slowbro": CatalogResult(80, "slowbro", "https://img/80.gif"),
                "typo": SubjectNotFoundError("typo"),
            },
            delays={"slowbro": 10},
        )
        stage = CanonicalizationStage(Canonicalizer(stub), max_concurrency=2)

        result = await asyncio.wait_for(stage([raw("slowbro"), raw("typo")], context), timeout=2)

        assert result.failed
        assert stub.in_flight == 0

    @pytest.mark.asyncio
    async def test_empty_batch(self, context, catalog):
        result = await CanonicalizationStage(Canonicalizer(catalog)).process([], context)

        assert result.status == PipelineStatus.SUCCESS
        assert result.data == []

    def test_sprite_errors_are_not_fatal(self):
        assert SpriteNotFoundError("MissingNo", 0).fatal is False
        assert SubjectNotFoundError("Pikachuu").fatal is True


class TestParsingStage:
    """Tests for ParsingStage.process()."""

    @pytest.mark.asyncio
    async def test_parses_in_order(self, workspace, context):
        first = write_submission(workspace, "a.yaml", "pokemon_name: Pikachu\ntrainer_note: hi\n")
        second = write_submission(workspace, "b.yaml", "pokemon_name: Bulbasaur\ntrainer_note: yo\n")

        result = await ParsingStage(SubmissionParser(workspace))([first, second], context)

        assert result.status == PipelineStatus.SUCCESS
        assert [r.subject_name for r in result.data] == ["Pikachu", "Bulbasaur"]
        assert result.data[0].source_path == first

    @pytest.mark.asyncio
    async def test_first_malformed_file_fails_stage(self, workspace, context):
        good = write_submission(workspace, "a.yaml", "pokemon_name: Pikachu\ntrainer_note: hi\n")
        bad = write_submission(workspace, "b.yaml", "pokemon_name: Bulbasaur\n")

        result = await ParsingStage(SubmissionParser(workspace))([good, bad], context)

        assert result.failed
        assert result.data == []
        assert isinstance(result.fatal_error, MalformedSubmissionError)
        assert "trainer_note" in str(result.fatal_error)
