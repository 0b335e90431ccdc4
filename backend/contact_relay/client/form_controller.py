# contact_relay/client/form_controller.py
"""Two-step contact form: validate, show a confirmation, then deliver.

The controller drives a FormView instead of a page, so the whole flow runs
without a browser. States:

    input --valid submit--> confirm --valid submit--> submitting
    confirm --edit--> input
    submitting --delivered--> input (draft cleared)
    submitting --failed--> confirm
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from contact_relay.client.backends import DeliveryBackend, EndpointBackend, RelayApiBackend, RelayClientState
from contact_relay.client.fields import FormDraft, FormFields, validate_fields
from contact_relay.core.errors import delivery_error_message
from contact_relay.core.rules import NOT_ENTERED
from contact_relay.core.settings import Settings

log = logging.getLogger("uvicorn.error")

CHECK_INPUT_MESSAGE = "入力内容をご確認ください。"
CONFIRM_PROMPT_MESSAGE = "入力内容をご確認ください。内容に問題なければ送信ボタンを押してください。"
SENDING_MESSAGE = "送信中です…"
SENT_MESSAGE = "送信が完了しました。担当者より折り返しご連絡いたします。"


class FormState(str, Enum):
    INPUT = "input"
    CONFIRM = "confirm"
    SUBMITTING = "submitting"


class StatusKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class FormView:
    status: str = ""
    status_kind: Optional[StatusKind] = None
    errors: Dict[str, str] = field(default_factory=dict)
    confirm: Dict[str, str] = field(default_factory=dict)
    body_hidden: bool = False
    confirm_hidden: bool = True

    def set_status(self, message: str = "", kind: Optional[StatusKind] = None) -> None:
        self.status = message or ""
        self.status_kind = kind

    def show_error(self, field_name: str, message: str) -> None:
        # an empty message clears the slot
        if message:
            self.errors[field_name] = message
        else:
            self.errors.pop(field_name, None)

    def clear_errors(self) -> None:
        self.errors.clear()


class FormController:
    def __init__(
        self,
        draft: FormDraft,
        *,
        endpoint: EndpointBackend,
        relay: Optional[RelayApiBackend] = None,
        view: Optional[FormView] = None,
    ):
        self.draft = draft
        self.endpoint = endpoint
        self.relay = relay
        self.view = view or FormView()
        self.state = FormState.INPUT
        self._hide_confirm()

    @classmethod
    def from_settings(cls, draft: FormDraft, settings: Settings, **kwargs) -> "FormController":
        relay = RelayApiBackend(
            settings.emailjs_public_key,
            settings.emailjs_service_id,
            settings.emailjs_template_id,
            api_url=settings.emailjs_api_url,
        )
        return cls(draft, endpoint=EndpointBackend(settings.form_action), relay=relay, **kwargs)

    def _hide_confirm(self) -> None:
        self.state = FormState.INPUT
        self.view.body_hidden = False
        self.view.confirm_hidden = True

    def _show_confirm(self, fields: FormFields) -> None:
        self.view.confirm = {
            name: value or NOT_ENTERED
            for name, value in fields.confirmation_values().items()
        }
        self.state = FormState.CONFIRM
        self.view.body_hidden = True
        self.view.confirm_hidden = False
        self.view.set_status(CONFIRM_PROMPT_MESSAGE)

    def on_input(self, field_name: str) -> None:
        """The user touched a field: drop its error, leave the rest alone."""
        self.view.show_error(field_name, "")

    def edit(self) -> FormState:
        if self.state is FormState.SUBMITTING:
            return self.state
        self._hide_confirm()
        self.view.set_status("")
        return self.state

    async def _select_backend(self) -> DeliveryBackend:
        if self.relay is not None and self.relay.available:
            if self.relay.state is not RelayClientState.READY:
                await self.relay.init()
            return self.relay
        return self.endpoint

    async def submit(self) -> FormState:
        if self.state is FormState.SUBMITTING:
            log.info("[form] submit ignored while a delivery is in flight")
            return self.state

        self.view.clear_errors()
        self.view.set_status("")

        # re-read the draft every time; it may have changed since confirm
        fields = FormFields.from_draft(self.draft)
        errors = validate_fields(fields)
        if errors:
            for name, message in errors.items():
                self.view.show_error(name, message)
            self.view.set_status(CHECK_INPUT_MESSAGE, StatusKind.ERROR)
            return self.state

        if self.state is not FormState.CONFIRM:
            self._show_confirm(fields)
            return self.state

        self.view.set_status(SENDING_MESSAGE)
        self.state = FormState.SUBMITTING
        try:
            backend = await self._select_backend()
            await backend.send(fields)
        except Exception as exc:
            log.warning(f"[form] delivery failed: {exc!r}")
            self.state = FormState.CONFIRM
            self.view.set_status(delivery_error_message(exc), StatusKind.ERROR)
            return self.state

        self.draft.reset()
        self._hide_confirm()
        self.view.set_status(SENT_MESSAGE, StatusKind.SUCCESS)
        return self.state
