"""
PokeAPI catalog client.

The catalog is the trust boundary of the pipeline: a submission only names a
Pokemon, and both the dataset ``id`` and the sprite URL come from here.
"""

from typing import Optional
from urllib.parse import quote

import httpx

from ..config import CatalogConfig
from ..pipeline.base import (
    CatalogError,
    CatalogResult,
    SpriteNotFoundError,
    SubjectNotFoundError,
)
from ..transformers.field_extractor import MISSING, first_present, get_nested
from .base_source import BaseSource, SourceConfig


class CatalogClient(BaseSource):
    """
    Resolve Pokemon names against PokeAPI.

    ``resolve`` raises ``SubjectNotFoundError`` for names PokeAPI doesn't
    know, ``SpriteNotFoundError`` when none of the configured sprite paths
    holds a URL, and ``CatalogError`` for everything else that goes wrong.
    """

    def __init__(
        self,
        catalog_config: Optional[CatalogConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.catalog_config = catalog_config if catalog_config is not None else CatalogConfig()
        super().__init__(transport=transport)

    def _create_default_config(self) -> SourceConfig:
        return SourceConfig(
            name="PokeAPI",
            base_url=self.catalog_config.base_url.rstrip("/"),
            timeout=self.catalog_config.timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": self.catalog_config.user_agent,
            },
        )

    @staticmethod
    def normalize_name(subject_name: str) -> str:
        """PokeAPI names are lowercase"""
        return subject_name.strip().lower()

    def pokemon_url(self, normalized_name: str) -> str:
        return f"{self.config.base_url}/pokemon/{quote(normalized_name, safe='')}"

    async def resolve(self, subject_name: str) -> CatalogResult:
        """
        Look up one Pokemon.

        Args:
            subject_name: Name as the contributor typed it

        Returns:
            CatalogResult with PokeAPI's id, name and the preferred sprite URL
        """
        normalized = self.normalize_name(subject_name)
        # "" and dot segments would address a different endpoint
        if not normalized.strip("."):
            raise SubjectNotFoundError(subject_name.strip())

        url = self.pokemon_url(normalized)
        try:
            response = await self._make_request(url)
        except httpx.RequestError as e:
            raise CatalogError(f"Could not reach PokeAPI for '{normalized}': {e}") from e

        if response.status_code == 404:
            self.logger.warning(f"Could not find Pokemon in PokeAPI: {normalized}")
            raise SubjectNotFoundError(subject_name.strip())

        if not response.is_success:
            raise CatalogError(
                f"PokeAPI lookup for '{normalized}' failed: "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError(f"PokeAPI returned invalid JSON for '{normalized}'") from e

        catalog_id = get_nested(data, ["id"])
        if isinstance(catalog_id, bool) or not isinstance(catalog_id, int) or catalog_id <= 0:
            raise CatalogError(f"PokeAPI response for '{normalized}' has no usable id")

        catalog_name = get_nested(data, ["name"])
        if not isinstance(catalog_name, str) or not catalog_name:
            catalog_name = normalized

        sprite_url = first_present(data, self.catalog_config.sprite_paths)
        if sprite_url is MISSING or not isinstance(sprite_url, str):
            self.logger.warning(f"Could not find a sprite for {normalized} (ID: {catalog_id})")
            raise SpriteNotFoundError(subject_name.strip(), catalog_id)

        self.logger.debug(f"Resolved {normalized} to ID {catalog_id}")
        return CatalogResult(
            catalog_id=catalog_id,
            catalog_name=catalog_name,
            sprite_url=sprite_url,
        )
