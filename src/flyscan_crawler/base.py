"""Abstract base class for Google Flights RPC searches."""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from flyscan_crawler.client import Client, get_client
from flyscan_crawler.google.encoder import FiltersPayload

if TYPE_CHECKING:
    import asyncio

    from flyscan_crawler.google.encoder import SearchFilters

logger = logging.getLogger(__name__)

RPC_BASE_URL = (
    "https://www.google.com/_/FlightsFrontendUi/data/"
    "travel.frontend.flights.FlightsFrontendService"
)


class BaseSearch(abc.ABC):
    """Base class that every RPC search implements.

    The transport is injected; without one the process-wide client is used.
    """

    URL: ClassVar[str]

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_client()

    @abc.abstractmethod
    async def search(self, filters: Any, *args: Any, **kwargs: Any) -> Any:
        """Run the search and return decoded results, or None if empty."""

    async def _fetch(
        self,
        filters: SearchFilters,
        *,
        abort: asyncio.Event | None = None,
    ) -> str:
        """Encode *filters*, POST them and return the raw response text."""
        body = FiltersPayload(filters).as_form_body()
        response = await self.client.post(self.URL, content=body, abort=abort)
        logger.debug(
            "%s answered %d bytes", type(self).__name__, len(response.content)
        )
        return response.text
