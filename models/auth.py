# models/auth.py

import logging
import secrets
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from config import AUTH_PROVIDER, AUTH_SERVICE_URL, HTTP_TIMEOUT
from schemas.auth import LoginCredentials, Session, SignUpData, User
from utils.exceptions import AuthError

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """ Session-token auth. Call sites only see this interface. """

    @abstractmethod
    async def login(self, credentials: LoginCredentials) -> Session: ...

    @abstractmethod
    async def signup(self, data: SignUpData) -> Session: ...

    @abstractmethod
    async def logout(self, token: str) -> None: ...

    @abstractmethod
    async def get_user(self, token: str) -> Optional[User]: ...


class LocalMockAuthProvider(AuthProvider):
    """
    Development stand-in: any credentials are accepted and sessions live in
    process memory, so they vanish on restart.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, User] = {}

    def _open_session(self, user: User) -> Session:
        token = secrets.token_urlsafe(24)
        self._sessions[token] = user
        return Session(token=token, user=user)

    async def login(self, credentials: LoginCredentials) -> Session:
        if not credentials.email.strip() or not credentials.password:
            raise AuthError("Email and password are required")
        name = credentials.email.split("@", 1)[0] or "User"
        return self._open_session(User(id="1", name=name, email=credentials.email))

    async def signup(self, data: SignUpData) -> Session:
        if not data.name.strip() or not data.email.strip() or not data.password:
            raise AuthError("Name, email and password are required")
        return self._open_session(User(id="1", name=data.name.strip(), email=data.email))

    async def logout(self, token: str) -> None:
        self._sessions.pop(token, None)

    async def get_user(self, token: str) -> Optional[User]:
        return self._sessions.get(token)


class RemoteServiceAuthProvider(AuthProvider):
    """ Delegates to an identity service exposing /login, /signup, /logout and /me. """

    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        if not base_url:
            raise AuthError("AUTH_SERVICE_URL is required for the remote auth provider")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _request(self, method: str, path: str, token: Optional[str] = None, json: Optional[dict] = None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                return await client.request(method, path, headers=headers, json=json)
            except httpx.HTTPError as e:
                logger.error("Auth service unreachable: %s", e)
                raise AuthError("Authentication service unavailable") from e

    async def _session(self, path: str, body: dict) -> Session:
        response = await self._request("POST", path, json=body)
        if response.status_code != 200:
            raise AuthError("Invalid credentials")
        try:
            return Session.model_validate(response.json())
        except ValueError as e:
            raise AuthError("Authentication service returned an invalid session") from e

    async def login(self, credentials: LoginCredentials) -> Session:
        return await self._session("/login", credentials.model_dump())

    async def signup(self, data: SignUpData) -> Session:
        return await self._session("/signup", data.model_dump())

    async def logout(self, token: str) -> None:
        await self._request("POST", "/logout", token=token)

    async def get_user(self, token: str) -> Optional[User]:
        response = await self._request("GET", "/me", token=token)
        if response.status_code != 200:
            return None
        try:
            return User.model_validate(response.json())
        except ValueError:
            return None


_provider: Optional[AuthProvider] = None


def get_auth_provider() -> AuthProvider:
    global _provider
    if _provider is None:
        if AUTH_PROVIDER == "remote":
            _provider = RemoteServiceAuthProvider(AUTH_SERVICE_URL)
        elif AUTH_PROVIDER == "local":
            _provider = LocalMockAuthProvider()
        else:
            raise ValueError(f"Invalid AUTH_PROVIDER: {AUTH_PROVIDER}")
        logger.info("Auth provider selected: %s", type(_provider).__name__)
    return _provider
