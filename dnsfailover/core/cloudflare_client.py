"""Cloudflare API client — zone lookup and CNAME record operations."""

import logging
import re
from typing import Any

import requests

from dnsfailover.config import CLOUDFLARE_API_BASE, RECORD_TYPE, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Cloudflare API tokens are alphanumeric strings with hyphens/underscores
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{20,}$")


class CloudflareAPIError(Exception):
    """Raised when a Cloudflare API call fails."""

    def __init__(self, status_code: int, errors: list[dict]):
        self.status_code = status_code
        self.errors = errors
        messages = "; ".join(e.get("message", str(e)) for e in errors)
        super().__init__(f"Cloudflare API error ({status_code}): {messages}")


def sanitize_token(raw: str) -> str:
    """Extract a clean API token from pasted input.

    Strips surrounding quotes and a leading ``Bearer`` prefix.  Raises
    ``ValueError`` if the result doesn't look like a Cloudflare API token.
    """
    cleaned = raw.strip().strip('"').strip("'").strip()
    if cleaned.startswith("Bearer "):
        cleaned = cleaned[len("Bearer "):].strip()

    if not cleaned:
        raise ValueError("Token is empty.")
    if not _TOKEN_PATTERN.match(cleaned):
        raise ValueError(
            "Invalid API token format.\n"
            "Paste only the token value, not a curl command or header."
        )
    return cleaned


class CloudflareClient:
    """Thin wrapper around the Cloudflare v4 REST API.

    The *token* is accepted per-method call so it never needs to be stored
    as instance state.  Failures are raised, never retried.
    """

    def __init__(self, timeout: float | None = REQUEST_TIMEOUT_SECONDS) -> None:
        self._session = requests.Session()
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        token: str,
        *,
        params: dict | None = None,
        json_body: dict | None = None,
    ) -> Any:
        """Execute a single API call and return the decoded envelope."""
        url = f"{CLOUDFLARE_API_BASE}{path}"
        logger.debug("%s %s params=%s", method, path, params)
        try:
            resp = self._session.request(
                method,
                url,
                headers=self._headers(token),
                params=params,
                json=json_body,
                timeout=self._timeout,
            )
        except requests.ConnectionError as exc:
            raise CloudflareAPIError(0, [{"message": f"Connection failed: {exc}"}]) from exc
        except requests.Timeout as exc:
            raise CloudflareAPIError(0, [{"message": f"Request timed out: {exc}"}]) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise CloudflareAPIError(
                resp.status_code, [{"message": "Response was not valid JSON"}]
            ) from exc
        if not data.get("success", False):
            raise CloudflareAPIError(resp.status_code, data.get("errors", []))
        return data

    def _paged(self, path: str, token: str, params: dict) -> list[dict]:
        results: list[dict] = []
        page = 1
        while True:
            data = self._request(
                "GET", path, token, params={**params, "page": page, "per_page": 100}
            )
            results.extend(data["result"])
            info = data.get("result_info") or {}
            if page >= info.get("total_pages", 1):
                break
            page += 1
        return results

    # ------------------------------------------------------------------
    # Token verification
    # ------------------------------------------------------------------

    def verify_token(self, token: str) -> bool:
        """Verify *token* against ``/user/tokens/verify``.

        Returns ``True`` if the token is valid and active.
        Raises ``CloudflareAPIError`` on auth failure.
        """
        data = self._request("GET", "/user/tokens/verify", token)
        status = data.get("result", {}).get("status", "")
        return status == "active"

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def zone_id_by_name(self, token: str, zone_name: str) -> str:
        """Return the id of the zone called *zone_name*.

        Raises ``CloudflareAPIError`` when no zone, or more than one, matches.
        """
        zones = self._paged("/zones", token, {"name": zone_name})
        if len(zones) != 1:
            raise CloudflareAPIError(
                404,
                [{"message": f"expected one zone named {zone_name}, found {len(zones)}"}],
            )
        return zones[0]["id"]

    # ------------------------------------------------------------------
    # DNS Records
    # ------------------------------------------------------------------

    def list_records(self, token: str, zone_id: str, *, name: str) -> list[dict]:
        """Return all records in *zone_id* whose fully-qualified name is *name*."""
        raw = self._paged(f"/zones/{zone_id}/dns_records", token, {"name": name})
        return [_normalize_record(r) for r in raw]

    def update_record(
        self, token: str, zone_id: str, record_id: str, record: dict
    ) -> dict:
        """Update an existing DNS record by *record_id*."""
        body = _to_api_payload(record)
        data = self._request(
            "PUT",
            f"/zones/{zone_id}/dns_records/{record_id}",
            token,
            json_body=body,
        )
        return _normalize_record(data["result"])


# ------------------------------------------------------------------
# Record normalisation helpers
# ------------------------------------------------------------------

def _normalize_record(raw: dict) -> dict:
    """Transform a Cloudflare API record into a consistent internal format."""
    return {
        "id": raw["id"],
        "type": raw["type"],
        "name": raw["name"],
        "content": raw["content"],
        "ttl": raw.get("ttl", 1),
        "proxied": raw.get("proxied", False),
    }


def _to_api_payload(record: dict) -> dict:
    """Convert an internal record dict to a Cloudflare CNAME write payload."""
    return {
        "type": RECORD_TYPE,
        "name": record["name"],
        "content": record["content"],
        "ttl": record.get("ttl", 1),
        "proxied": record.get("proxied", False),
    }
