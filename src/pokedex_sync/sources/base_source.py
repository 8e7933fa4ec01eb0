"""
Base source class for the remote APIs the pipeline reads from.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)


@dataclass
class SourceConfig:
    """Configuration for a remote source"""

    name: str
    base_url: str
    timeout: int = 30
    headers: Dict[str, str] = field(default_factory=dict)


class BaseSource(ABC):
    """
    Abstract base class for remote sources.

    Owns one ``httpx.AsyncClient`` for its lifetime. Requests are made
    exactly once: a failure is reported to the caller, never retried.

    Use as an async context manager so the client is closed:

        async with CatalogClient(config) as catalog:
            result = await catalog.resolve("pikachu")
    """

    def __init__(
        self,
        config: Optional[SourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config if config is not None else self._create_default_config()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.session: Optional[httpx.AsyncClient] = None
        self._transport = transport

    @abstractmethod
    def _create_default_config(self) -> SourceConfig:
        """Create default configuration for this source"""
        pass

    def _get_session(self) -> httpx.AsyncClient:
        if self.session is None:
            self.session = httpx.AsyncClient(
                headers=self.config.headers,
                timeout=self.config.timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self.session

    async def _make_request(self, url: str, method: str = "GET", **kwargs: Any) -> httpx.Response:
        """
        Make a single HTTP request.

        Args:
            url: URL to request
            method: HTTP method
            **kwargs: Passed to ``httpx.AsyncClient.request``

        Returns:
            The response, whatever its status code

        Raises:
            httpx.RequestError: On transport failures (DNS, connect, timeout)
        """
        self.logger.debug(f"{method} {url}")
        response = await self._get_session().request(method, url, **kwargs)
        self.logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    async def close(self):
        """Close HTTP session"""
        if self.session:
            await self.session.aclose()
            self.session = None

    async def __aenter__(self):
        """Context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.config.name}, base_url={self.config.base_url})>"
