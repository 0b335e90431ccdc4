# contact_relay/client/backends.py
"""Delivery backends for the contact form controller.

Both expose `async send(fields)` and raise a DeliveryError subclass on failure.
A submission uses exactly one of them; there is no fallback between the two.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

import httpx

from contact_relay.client.fields import FormFields
from contact_relay.core.errors import EndpointNotConfigured, RelaySendFailed, SubmitFailed
from contact_relay.core.rules import NOT_ENTERED, NOT_SPECIFIED

log = logging.getLogger("uvicorn.error")

PUBLIC_KEY_PLACEHOLDER = "YOUR_PUBLIC_KEY"
SERVICE_ID_PLACEHOLDER = "YOUR_SERVICE_ID"
TEMPLATE_ID_PLACEHOLDER = "YOUR_TEMPLATE_ID"
ENDPOINT_PLACEHOLDER_TOKEN = "{your-id}"

EMAILJS_API_URL = "https://api.emailjs.com"
EMAILJS_SEND_PATH = "/api/v1.0/email/send"


class DeliveryBackend(Protocol):
    async def send(self, fields: FormFields) -> None: ...


class RelayClientState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class RelayApiBackend:
    """EmailJS relay, called straight from the page with public credentials."""

    def __init__(
        self,
        public_key: str,
        service_id: str,
        template_id: str,
        *,
        api_url: str = EMAILJS_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.public_key = public_key
        self.service_id = service_id
        self.template_id = template_id
        self.api_url = api_url
        self.state = RelayClientState.UNINITIALIZED
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def available(self) -> bool:
        return (
            bool(self.public_key) and self.public_key != PUBLIC_KEY_PLACEHOLDER
            and bool(self.service_id) and self.service_id != SERVICE_ID_PLACEHOLDER
            and bool(self.template_id) and self.template_id != TEMPLATE_ID_PLACEHOLDER
        )

    async def init(self) -> None:
        if self.state is RelayClientState.READY:
            return
        self._client = httpx.AsyncClient(base_url=self.api_url, transport=self._transport)
        self.state = RelayClientState.READY
        log.info(f"[relay] client ready for service {self.service_id}")

    @staticmethod
    def template_params(fields: FormFields) -> Dict[str, str]:
        return {
            "name": fields.name,
            "email": fields.email,
            "tel": fields.phone or NOT_ENTERED,
            "message": fields.message,
            "contact_method": fields.contact_method_summary or NOT_SPECIFIED,
        }

    async def send(self, fields: FormFields) -> None:
        await self.init()
        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": self.template_params(fields),
        }
        try:
            resp = await self._client.post(EMAILJS_SEND_PATH, json=payload)
        except httpx.HTTPError as exc:
            raise RelaySendFailed(str(exc)) from exc
        if not resp.is_success:
            raise RelaySendFailed(f"HTTP {resp.status_code}: {resp.text[:200]}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()


class EndpointBackend:
    """Posts the form as multipart/form-data to the form's action URL."""

    def __init__(
        self,
        action: Optional[str],
        *,
        method: str = "POST",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.action = action
        self.method = method or "POST"
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.action) and ENDPOINT_PLACEHOLDER_TOKEN not in self.action

    @staticmethod
    def form_parts(fields: FormFields) -> List[Tuple[str, Tuple[None, str]]]:
        # the form goes out as entered; the endpoint does its own trimming
        raw = fields.source or fields
        parts = [
            ("name", raw.name or ""),
            ("email", raw.email or ""),
            ("phone", raw.phone or ""),
            ("message", raw.message or ""),
        ]
        parts.extend(("contact_method", value) for value in raw.contact_method or ())
        parts.append(("contact_method_summary", fields.contact_method_summary))
        if fields.agreement:
            parts.append(("agreement", "on"))
        # (None, value) keeps each part a plain field rather than a file upload
        return [(key, (None, value)) for key, value in parts]

    async def send(self, fields: FormFields) -> None:
        if not self.configured:
            raise EndpointNotConfigured(f"form action not set: {self.action!r}")

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                resp = await client.request(
                    self.method,
                    self.action,
                    files=self.form_parts(fields),
                    headers={"Accept": "application/json"},
                )
            except httpx.HTTPError as exc:
                raise SubmitFailed(str(exc)) from exc

        if not resp.is_success:
            raise SubmitFailed(f"HTTP {resp.status_code}")
