"""Passcode API client — async HTTP client for the MultiAuth API.

Used by the interactive simulator.  ``base_url`` defaults to the configured
API location; tests pass an ``httpx`` transport to talk to the app in-process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from multiauth.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PasscodeResult:
    """Outcome of a create or check call."""

    code: str
    ok: bool
    message: str


@dataclass
class RemotePasscode:
    """One row of the active-passcode listing."""

    code: str
    remaining_ms: int
    remaining_seconds: int


class PasscodeClient:
    """Async HTTP wrapper around the passcode API."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    async def create_or_renew(
        self, code: str, duration_ms: int | None = None
    ) -> PasscodeResult | None:
        """Create *code* or reset its expiry.

        ``PasscodeResult.ok`` is ``True`` when an existing passcode was
        renewed.  Returns ``None`` if the request could not be completed.
        Rejected input comes back as a result carrying the server's message.
        """
        url = f"{self._base_url}/passcodes"
        payload: dict = {"code": code}
        if duration_ms is not None:
            payload["duration_ms"] = duration_ms
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload)
            if resp.status_code == 200:
                data = resp.json()
                return PasscodeResult(
                    code=data["code"], ok=data["renewed"], message=data["message"]
                )
            if resp.status_code == 400:
                return PasscodeResult(code=code, ok=False, message=resp.json()["detail"])
            logger.error("Passcode create failed: %s %s", resp.status_code, resp.text)
            return None
        except httpx.HTTPError as exc:
            logger.exception("Passcode create request error: %s", exc)
            return None

    async def is_valid(self, code: str) -> PasscodeResult | None:
        """Check whether *code* is still valid.

        Returns ``None`` if the request could not be completed.
        """
        url = f"{self._base_url}/passcodes/check"
        try:
            async with self._client() as client:
                resp = await client.post(url, json={"code": code})
            if resp.status_code == 200:
                data = resp.json()
                return PasscodeResult(
                    code=data["code"], ok=data["valid"], message=data["message"]
                )
            if resp.status_code == 400:
                return PasscodeResult(code=code, ok=False, message=resp.json()["detail"])
            logger.error("Passcode check failed: %s %s", resp.status_code, resp.text)
            return None
        except httpx.HTTPError as exc:
            logger.exception("Passcode check request error: %s", exc)
            return None

    async def list_active(self) -> list[RemotePasscode]:
        """Fetch active passcodes, soonest-expiring first.

        Returns an empty list if the request could not be completed.
        """
        url = f"{self._base_url}/passcodes"
        try:
            async with self._client() as client:
                resp = await client.get(url)
            if resp.status_code == 200:
                return [
                    RemotePasscode(
                        code=row["code"],
                        remaining_ms=row["remaining_ms"],
                        remaining_seconds=row["remaining_seconds"],
                    )
                    for row in resp.json()["passcodes"]
                ]
            logger.error("Passcode list failed: %s %s", resp.status_code, resp.text)
            return []
        except httpx.HTTPError as exc:
            logger.exception("Passcode list request error: %s", exc)
            return []
