"""Async client for the SharePoint list REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable, Mapping, Optional

import httpx
from fastapi import status

from .config import Settings

logger = logging.getLogger(__name__)

_JSON_NOMETADATA = "application/json;odata=nometadata"


class ListStoreError(Exception):
    """Wrap transport or API failures when communicating with SharePoint."""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(str(detail))
        self.status_code = status_code
        self.detail = detail

    @property
    def is_not_found(self) -> bool:
        return self.status_code == status.HTTP_404_NOT_FOUND


def quote_odata_literal(value: str) -> str:
    """Return ``value`` as an OData string literal with quotes escaped."""

    return "'" + value.replace("'", "''") + "'"


class SharePointClient:
    """Client for list items and the site user directory.

    HTTP connections are pooled per (site, timeout) pair and shared across
    instances, so constructing a client per request is cheap.
    """

    _client_lock: asyncio.Lock = asyncio.Lock()
    _client_pool: dict[tuple[str, float], httpx.AsyncClient] = {}

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings
        self._http_client = http_client

    def _client_key(self) -> tuple[str, float]:
        return (self._site_url, float(self._settings.request_timeout))

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client

        key = self._client_key()
        client = self.__class__._client_pool.get(key)
        if client is not None:
            return client

        async with self.__class__._client_lock:
            client = self.__class__._client_pool.get(key)
            if client is None:
                timeout = httpx.Timeout(self._settings.request_timeout, connect=10.0)
                limits = httpx.Limits(
                    max_connections=20,
                    max_keepalive_connections=10,
                )
                client = httpx.AsyncClient(
                    timeout=timeout,
                    limits=limits,
                    http2=True,
                )
                self.__class__._client_pool[key] = client
        return client

    @property
    def _site_url(self) -> str:
        return self._settings.site_url

    @property
    def _headers(self) -> dict[str, str]:
        token = self._settings.sharepoint_access_token.get_secret_value()
        return {
            "Authorization": f"Bearer {token}",
            "Accept": _JSON_NOMETADATA,
            "Content-Type": _JSON_NOMETADATA,
        }

    def _items_url(self, list_title: str, item_id: Optional[int] = None) -> str:
        url = (
            f"{self._site_url}/_api/web/lists/getbytitle"
            f"({quote_odata_literal(list_title)})/items"
        )
        if item_id is not None:
            url += f"({int(item_id)})"
        return url

    @staticmethod
    def _query_params(
        select: Optional[Iterable[str]] = None,
        expand: Optional[Iterable[str]] = None,
        filter: Optional[str] = None,
    ) -> dict[str, str]:
        params: dict[str, str] = {}
        if select:
            params["$select"] = ",".join(select)
        if expand:
            params["$expand"] = ",".join(expand)
        if filter:
            params["$filter"] = filter
        return params

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        headers = dict(self._headers)
        if extra_headers:
            headers.update(extra_headers)

        client = await self._get_http_client()
        logger.debug("SharePoint %s %s params=%s", method, url, params)
        try:
            response = await client.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_body,
            )
        except httpx.HTTPError as exc:
            raise ListStoreError(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc

        if response.status_code >= 400:
            detail = self._extract_error_detail(response.content)
            raise ListStoreError(response.status_code, detail)

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:  # pragma: no cover - unexpected payload
            raise ListStoreError(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc

    async def get_items(
        self,
        list_title: str,
        *,
        select: Optional[Iterable[str]] = None,
        expand: Optional[Iterable[str]] = None,
        filter: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Return the raw items of ``list_title``."""

        response = await self._send(
            "GET",
            self._items_url(list_title),
            params=self._query_params(select, expand, filter),
        )
        payload = self._json(response)
        if isinstance(payload, dict):
            return list(payload.get("value", []))
        return list(payload or [])

    async def get_item(
        self,
        list_title: str,
        item_id: int,
        *,
        select: Optional[Iterable[str]] = None,
        expand: Optional[Iterable[str]] = None,
    ) -> dict[str, Any]:
        """Return a single raw item; raises ``ListStoreError`` (404) when missing."""

        response = await self._send(
            "GET",
            self._items_url(list_title, item_id),
            params=self._query_params(select, expand),
        )
        return self._json(response)

    async def add_item(
        self, list_title: str, fields: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Create an item and return the stored record."""

        response = await self._send(
            "POST", self._items_url(list_title), json_body=dict(fields)
        )
        if not response.content:
            return {}
        return self._json(response)

    async def update_item(
        self, list_title: str, item_id: int, fields: Mapping[str, Any]
    ) -> None:
        """Merge ``fields`` into an existing item (last write wins)."""

        await self._send(
            "POST",
            self._items_url(list_title, item_id),
            json_body=dict(fields),
            extra_headers={"X-HTTP-Method": "MERGE", "IF-MATCH": "*"},
        )

    async def delete_item(self, list_title: str, item_id: int) -> None:
        """Permanently delete an item."""

        await self._send(
            "POST",
            self._items_url(list_title, item_id),
            extra_headers={"X-HTTP-Method": "DELETE", "IF-MATCH": "*"},
        )

    async def ensure_user(self, logon_name: str) -> dict[str, Any]:
        """Resolve a login or e-mail to a site user, creating it when absent."""

        if not logon_name:
            raise ValueError("logon_name must be provided")

        response = await self._send(
            "POST",
            f"{self._site_url}/_api/web/ensureuser",
            json_body={"logonName": logon_name},
        )
        return self._json(response)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            return
        await self.__class__.aclose_shared()

    @classmethod
    async def aclose_shared(cls) -> None:
        async with cls._client_lock:
            clients = list(cls._client_pool.values())
            cls._client_pool.clear()
        for client in clients:
            try:
                await client.aclose()
            except Exception:  # pragma: no cover - best effort cleanup
                logger.debug("Error closing pooled SharePoint client", exc_info=True)

    @staticmethod
    def _extract_error_detail(raw: bytes) -> Any:
        if not raw:
            return "SharePoint returned an empty error response."
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = raw.decode("utf-8", errors="ignore")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return text
        if isinstance(payload, dict):
            error = payload.get("odata.error") or payload.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                if isinstance(message, dict):
                    return message.get("value") or error
                return message or error
            return payload
        return payload


__all__ = ["ListStoreError", "SharePointClient", "quote_odata_literal"]
