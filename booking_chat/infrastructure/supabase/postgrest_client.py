from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_chat.application.exceptions import StoreError


class PostgrestError(StoreError):
    """Error response from the Supabase REST API."""

    def __init__(self, status: int, message: str, code: str | None = None, details: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.details = details


class PostgrestClient:
    """Thin synchronous client for the Supabase PostgREST endpoint (``/rest/v1``)."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not base_url or not service_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the Supabase store")
        self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        data = self._request("GET", f"/{table}", params=params)
        return data if isinstance(data, list) else []

    def select_one(self, table: str, params: dict[str, str]) -> dict[str, Any] | None:
        rows = self.select(table, {**params, "limit": "1"})
        return rows[0] if rows else None

    def insert(self, table: str, record: dict[str, Any], select: str = "*") -> list[dict[str, Any]]:
        data = self._request(
            "POST",
            f"/{table}",
            params={"select": select},
            json=record,
            prefer="return=representation",
        )
        return data if isinstance(data, list) else []

    def upsert(self, table: str, record: dict[str, Any], on_conflict: str) -> None:
        self._request(
            "POST",
            f"/{table}",
            params={"on_conflict": on_conflict},
            json=record,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    def delete(self, table: str, params: dict[str, str]) -> None:
        self._request("DELETE", f"/{table}", params=params, prefer="return=minimal")

    def rpc(self, function: str, args: dict[str, Any]) -> Any:
        return self._request("POST", f"/rpc/{function}", json=args)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            resp = self._client.request(method, f"{self._rest_url}{path}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error("Supabase request failed", extra={"error": str(e), "reason": path})
            raise StoreError(f"Supabase request failed: {e}") from e

        if resp.status_code >= 400:
            try:
                error_json = resp.json()
            except ValueError:
                error_json = {}
            message = error_json.get("message") or resp.text or f"HTTP {resp.status_code}"
            self._logger.error(
                "Supabase returned an error",
                extra={"error": message, "code": error_json.get("code"), "reason": path},
            )
            raise PostgrestError(
                status=resp.status_code,
                message=message,
                code=error_json.get("code"),
                details=error_json.get("details"),
            )

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()
