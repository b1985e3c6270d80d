# models/ai_search.py

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from config import AI_SEARCH_TABLE, HTTP_TIMEOUT, PICA_CONNECTION_KEY, PICA_QUERY_URL, PICA_SECRET_KEY
from schemas.search import AISearchResult
from utils.exceptions import AIServiceError

logger = logging.getLogger(__name__)


def _headers() -> dict:
    if not PICA_SECRET_KEY or not PICA_CONNECTION_KEY:
        raise AIServiceError("PICA_SECRET_KEY and PICA_CONNECTION_KEY are required for AI search")
    return {
        "Content-Type": "application/json",
        "x-pica-secret": PICA_SECRET_KEY,
        "x-pica-connection-key": PICA_CONNECTION_KEY,
    }


def parse_ai_result(payload) -> AISearchResult:
    """ The service answers either a bare list of rows or an envelope with data/explanation/confidence. """
    if isinstance(payload, list):
        return AISearchResult(data=payload)
    if not isinstance(payload, dict):
        raise AIServiceError("AI search returned an unexpected payload")

    data = payload.get("data", payload.get("results", []))
    if not isinstance(data, list):
        raise AIServiceError("AI search returned a non-list 'data' field")
    try:
        return AISearchResult(
            data=data,
            explanation=payload.get("explanation"),
            confidence=payload.get("confidence"),
        )
    except ValidationError as e:
        logger.error("AI search payload rejected: %s", e)
        raise AIServiceError("AI search returned malformed rows") from e


async def search_candidates_with_ai(
    query: str,
    table: str = AI_SEARCH_TABLE,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> AISearchResult:
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=transport) as client:
        try:
            response = await client.post(
                PICA_QUERY_URL,
                headers=_headers(),
                json={"query": query, "table": table},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("AI search error: %s %s", e.response.status_code, e.response.reason_phrase)
            raise AIServiceError(f"AI search service error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("AI search request failed: %s", e)
            raise AIServiceError("AI search service unreachable") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise AIServiceError("AI search returned invalid JSON") from e
    return parse_ai_result(payload)
