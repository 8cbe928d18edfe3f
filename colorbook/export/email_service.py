"""
Email delivery of finished books through the Resend HTTP API.
"""

from __future__ import annotations

import html
import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol

import requests

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_SENDER = "Coloring Book <onboarding@resend.dev>"


@dataclass(frozen=True)
class EmailDelivery:
    """One outgoing message. ``attachment_base64`` is the transfer-encoded PDF."""

    recipient: str
    attachment_base64: str
    filename: str
    subject: str


@dataclass(frozen=True)
class EmailResult:
    success: bool
    error: str | None = None

    @classmethod
    def sent(cls) -> "EmailResult":
        return cls(success=True)

    @classmethod
    def failure(cls, message: str) -> "EmailResult":
        return cls(success=False, error=message)


class EmailDeliveryService(Protocol):
    def send(self, delivery: EmailDelivery) -> EmailResult:
        ...


class ResendEmailService:
    """
    Sends books as PDF attachments using Resend.

    Parameters
    ----------
    api_key:
        Resend API key. Falls back to ``RESEND_API_KEY`` environment variable.
    sender:
        ``From`` header. Falls back to ``RESEND_FROM_EMAIL``, then a Resend onboarding sender.
    session:
        Optional :class:`requests.Session`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        sender: str | None = None,
        session: requests.Session | None = None,
        request_timeout: float = 30.0,
        api_url: str = RESEND_API_URL,
    ) -> None:
        self._api_key = api_key or os.getenv("RESEND_API_KEY")
        if not self._api_key:
            raise ValueError(
                "Email service not configured. Set RESEND_API_KEY or pass api_key."
            )
        self._sender = sender or os.getenv("RESEND_FROM_EMAIL") or DEFAULT_SENDER
        self._session = session or requests.Session()
        self._request_timeout = request_timeout
        self._api_url = api_url

    def send(self, delivery: EmailDelivery) -> EmailResult:
        payload = self._build_payload(delivery)
        try:
            response = self._session.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._request_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Email send to %s failed: %s", delivery.recipient, exc)
            return EmailResult.failure(str(exc))

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Resend rejected email to %s: %s", delivery.recipient, message)
            return EmailResult.failure(message)

        return EmailResult.sent()

    def _build_payload(self, delivery: EmailDelivery) -> dict[str, Any]:
        safe_title = html.escape(delivery.subject)
        return {
            "from": self._sender,
            "to": [delivery.recipient],
            "subject": delivery.subject,
            "html": (
                f"<p>Here's your coloring book: <strong>{safe_title}</strong></p>"
                "<p>The PDF is attached — print it out and have fun coloring!</p>"
            ),
            "attachments": [
                {
                    "filename": delivery.filename,
                    "content": delivery.attachment_base64,
                }
            ],
        }


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return response.text.strip() or f"HTTP {response.status_code}"
