from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote_plus

from .adapters import HttpSourceAdapter
from .config import SEARCH_BURST, SEARCH_MAX_RPS, SEARCH_URL_TEMPLATES, SEARCH_USER_AGENT
from .errors import ProviderError
from .extractor import extract_flight
from .logging_utils import log_event
from .models import PartialFlightRecord

logger = logging.getLogger("flightxp.search")

SOURCE = "search"


def search_query(flight_number: str, flight_date: str) -> str:
    return f"{flight_number} flight status {flight_date}"


class SearchResultAdapter(HttpSourceAdapter):
    """
    Scrapes public search-engine result pages and runs them through the extractor.
    Engines are tried in order; the first complete extraction wins, otherwise the
    best partial one is returned.
    """

    name = SOURCE
    max_rps = SEARCH_MAX_RPS
    burst = SEARCH_BURST
    default_headers = {
        "User-Agent": SEARCH_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }

    def __init__(self, url_templates: Optional[List[str]] = None, **kwargs: Any) -> None:
        self.url_templates = list(url_templates or SEARCH_URL_TEMPLATES)
        super().__init__(**kwargs)

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        query = quote_plus(search_query(flight_number, flight_date))
        best: Optional[PartialFlightRecord] = None
        last_error: Optional[ProviderError] = None

        for template in self.url_templates:
            url = template.format(query=query)
            try:
                page = await self._get(url, as_text=True)
            except ProviderError as e:
                log_event(
                    logger,
                    "search_engine_failed",
                    level=logging.WARNING,
                    engine=url.split("/")[2],
                    error=str(e),
                )
                last_error = e
                continue
            if not page:
                continue

            record = extract_flight(
                page, source=self.name, flight_number=flight_number, flight_date=flight_date
            )
            if record is None:
                continue
            if record.is_complete():
                log_event(logger, "search_extracted", engine=url.split("/")[2], flight_number=flight_number)
                return record
            if best is None or record.richness() > best.richness():
                best = record

        if best is None and last_error is not None:
            raise last_error
        return best
