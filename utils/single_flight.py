# utils/single_flight.py
# At most one in-flight request per (action, caller). In-memory; single-instance only.

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set, Tuple

from starlette.requests import Request

import config
from utils.exceptions import RequestInFlightError

logger = logging.getLogger(__name__)


def caller_key(request: Request) -> str:
    """
    Identifies the caller, most specific first: the bearer token, then the
    client id header sent by the front-end, then the client IP. X-Forwarded-For
    is only used when TRUST_PROXY_HEADERS is on.
    """
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return "token:" + auth.split(" ", 1)[1].strip()
    client_id = (request.headers.get(config.CLIENT_ID_HEADER) or "").strip()
    if client_id:
        return "client:" + client_id
    if config.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return "ip:" + forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return "ip:" + request.client.host
    return "ip:unknown"


class SingleFlight:
    def __init__(self) -> None:
        self._in_flight: Set[Tuple[str, str]] = set()

    def is_running(self, action: str, key: str) -> bool:
        return (action, key) in self._in_flight

    @asynccontextmanager
    async def guard(self, action: str, key: str) -> AsyncIterator[None]:
        token = (action, key)
        # check-and-add has no await in between, so it is atomic on the event loop
        if token in self._in_flight:
            logger.warning("Rejected duplicate '%s' request", action)
            raise RequestInFlightError(action)
        self._in_flight.add(token)
        try:
            yield
        finally:
            self._in_flight.discard(token)


in_flight = SingleFlight()
