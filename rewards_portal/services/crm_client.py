"""HTTP client for the external CRM contact API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rewards_portal.config import Settings
from rewards_portal.errors import ExternalSyncFailure

logger = logging.getLogger(__name__)


class CrmClient:
    def __init__(
        self,
        *,
        base_url: str,
        access_token: str,
        api_version: str = "2021-07-28",
        timeout_seconds: float = 5.0,
        http_client: httpx.Client | None = None,
    ):
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout_seconds)
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Version": api_version,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "CrmClient":
        return cls(
            base_url=settings.crm_base_url,
            access_token=settings.crm_access_token or "",
            api_version=settings.crm_api_version,
            timeout_seconds=settings.crm_timeout_seconds,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, json=json, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ExternalSyncFailure(f"CRM request {method} {path} failed: {exc}") from exc

        data: dict[str, Any] = {}
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = {}

        if response.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            raise ExternalSyncFailure(
                message or f"CRM request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return data

    def update_contact_field(self, contact_id: str, field_id: str, value: Any) -> dict[str, Any]:
        return self._request("PUT", f"/contacts/{contact_id}", json={"customFields": [{"id": field_id, "value": value}]})

    def add_note(self, contact_id: str, text: str) -> dict[str, Any]:
        return self._request("POST", f"/contacts/{contact_id}/notes", json={"body": text})

    def add_tag(self, contact_id: str, tags: list[str]) -> dict[str, Any]:
        return self._request("POST", f"/contacts/{contact_id}/tags", json={"tags": tags})

    def create_contact(
        self,
        crm_location_id: str,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> str:
        data = self._request(
            "POST",
            "/contacts/",
            json={
                "locationId": crm_location_id,
                "firstName": first_name,
                "lastName": last_name,
                "email": email,
                "phone": phone,
            },
        )
        contact_id = (data.get("contact") or {}).get("id")
        if not contact_id:
            raise ExternalSyncFailure("CRM create contact response did not include an id")
        return contact_id

    def delete_contact(self, contact_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/contacts/{contact_id}")
