"""Outbound email through the Resend HTTP API."""

from __future__ import annotations

import html
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


def text_to_html(body: str) -> str:
    escaped = html.escape(body).replace("\n", "<br>")
    return f'<div style="font-family: sans-serif; line-height: 1.6;">{escaped}</div>'


class ResendMailer:
    """Sends one email per call. Never raises: returns whether Resend accepted it."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_base: str = "https://api.resend.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._api_base = api_base.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._sender)

    async def send(self, to: str, subject: str, text: str, html_body: Optional[str] = None) -> bool:
        if not self._api_key:
            logger.warning("RESEND_API_KEY not configured; email to %s not sent", to)
            return False
        if not self._sender:
            logger.warning("SMTP_FROM not configured; email to %s not sent", to)
            return False

        payload: dict[str, Any] = {"from": self._sender, "to": to, "subject": subject, "text": text}
        if html_body:
            payload["html"] = html_body

        logger.info("Sending email via Resend to %s", to)
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._api_base}/emails",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("Resend request failed: %s", exc)
            return False

        if resp.is_success:
            logger.info("Resend accepted email to %s", to)
            return True
        logger.error("Resend rejected email to %s: %s %s", to, resp.status_code, resp.text[:500])
        return False
