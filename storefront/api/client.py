"""aiohttp-based REST client with per-audience bearer tokens."""
from __future__ import annotations

import asyncio
import json
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from logging_config import logger
from storefront.core.auth_store import Audience, AuthStore
from storefront.core.config import Settings
from storefront.core.constants import (
    ADMIN_API_PREFIX,
    PUBLIC_API_PREFIX,
    RETRY_BACKOFF_SECONDS,
    USER_API_PREFIX,
)
from storefront.core.exceptions import ApiException, AuthenticationException, SchemaException
from storefront.core.navigation import Navigator

ModelT = TypeVar("ModelT", bound=BaseModel)

_PREFIXES = {
    Audience.USER: USER_API_PREFIX,
    Audience.ADMIN: ADMIN_API_PREFIX,
    None: PUBLIC_API_PREFIX,
}


def error_message(payload: Any, fallback: str) -> str:
    """Server ``message`` first, then ``error``, then the action's fallback."""
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback


def unwrap_data(body: Any) -> Any:
    """Return ``body["data"]`` for ``{success, data, message}`` envelopes."""
    if isinstance(body, dict) and isinstance(body.get("data"), (dict, list)):
        return body["data"]
    return body


def parse(model: type[ModelT], data: Any) -> ModelT:
    """Validate a response body, failing fast with :class:`SchemaException`."""
    try:
        return model.model_validate(unwrap_data(data))
    except ValidationError as exc:
        logger.error(f"Response does not match {model.__name__}: {exc.error_count()} errors")
        raise SchemaException(
            "Unexpected response from server",
            status=200,
            payload=data,
        ) from exc


class ApiClient:
    """
    Single HTTP session shared by all resource groups.

    User and admin requests carry their own slot's token; public requests
    carry none. A 401 clears only the audience that issued the request and
    redirects to its login page.
    """

    def __init__(
        self,
        settings: Settings,
        auth_store: AuthStore,
        navigator: Navigator | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.settings = settings
        self.auth_store = auth_store
        self.navigator = navigator
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.api_timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> ApiClient:
        await self._get_session()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def url_for(self, audience: Audience | None, path: str) -> str:
        return f"{self.settings.api_base_url}{_PREFIXES[audience]}/{path.lstrip('/')}"

    def _headers(self, audience: Audience | None) -> dict[str, str]:
        if audience is None:
            return {}
        token = self.auth_store.token_for(audience)
        return {"Authorization": f"Bearer {token}"} if token else {}

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        raw = await response.read()
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _handle_unauthorized(self, audience: Audience | None, payload: Any) -> None:
        if audience is None:
            return
        logger.warning(f"401 from {audience.value} API; clearing {audience.value} credentials")
        self.auth_store.clear(audience)
        if self.navigator is not None:
            self.navigator.redirect(audience.login_path)
        raise AuthenticationException(
            error_message(payload, "Session expired, please login again"),
            audience=audience.value,
            payload=payload,
        )

    async def request(
        self,
        audience: Audience | None,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        params: dict[str, Any] | None = None,
        fallback: str = "Request failed",
        retries: int = 0,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Args:
            audience: ``Audience.USER``, ``Audience.ADMIN`` or ``None`` for public
            method: HTTP method
            path: Path relative to the audience prefix
            json_body: JSON payload
            params: Query parameters
            fallback: Message used when the server does not supply one
            retries: Extra attempts on transport errors and 5xx (list fetches only)

        Raises:
            AuthenticationException: 401 for a user/admin request
            ApiException: any other failure
        """
        session = await self._get_session()
        url = self.url_for(audience, path)
        attempts = max(0, retries) + 1

        for attempt in range(1, attempts + 1):
            try:
                async with session.request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    headers=self._headers(audience),
                ) as response:
                    payload = await self._read_body(response)
                    status = response.status
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.warning(f"{method} {path} attempt {attempt}/{attempts} failed: {exc!r}")
                if attempt < attempts:
                    await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
                    continue
                raise ApiException(fallback) from exc

            if 200 <= status < 300:
                return payload

            if status == 401:
                self._handle_unauthorized(audience, payload)

            if status >= 500 and attempt < attempts:
                logger.warning(f"{method} {path} attempt {attempt}/{attempts} got HTTP {status}")
                await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
                continue

            message = error_message(payload, fallback)
            logger.error(f"{method} {path} failed with HTTP {status}: {message}")
            raise ApiException(message, status=status, payload=payload)

        raise ApiException(fallback)

    async def get(self, audience: Audience | None, path: str, **kwargs: Any) -> Any:
        return await self.request(audience, "GET", path, **kwargs)

    async def post(self, audience: Audience | None, path: str, **kwargs: Any) -> Any:
        return await self.request(audience, "POST", path, **kwargs)

    async def put(self, audience: Audience | None, path: str, **kwargs: Any) -> Any:
        return await self.request(audience, "PUT", path, **kwargs)

    async def delete(self, audience: Audience | None, path: str, **kwargs: Any) -> Any:
        return await self.request(audience, "DELETE", path, **kwargs)
