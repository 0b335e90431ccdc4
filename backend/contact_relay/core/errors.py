# contact_relay/core/errors.py
from typing import Optional


class DeliveryError(Exception):
    """A single delivery attempt from the form controller failed."""

    code = "DELIVERY_FAILED"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.code)
        self.detail = detail


class EndpointNotConfigured(DeliveryError):
    code = "FORM_ENDPOINT_NOT_CONFIGURED"


class SubmitFailed(DeliveryError):
    code = "FORM_SUBMIT_FAILED"


class RelaySendFailed(DeliveryError):
    code = "RELAY_SEND_FAILED"


class MailSendFailed(Exception):
    """The SMTP handoff on the relay endpoint failed; `error` keeps the cause for the log."""

    def __init__(self, error: Optional[str] = None):
        super().__init__(error or "MAIL_SEND_FAILED")
        self.error = error


GENERIC_FAILURE_MESSAGE = "送信に失敗しました。お手数ですが再度お試しください。"
NOT_CONFIGURED_MESSAGE = "送信設定が完了していません。EmailJSまたはFormspreeの接続設定をご確認ください。"


def delivery_error_message(error: Optional[BaseException]) -> str:
    """User-facing status text for a failed delivery; never exposes the raw error."""
    if isinstance(error, EndpointNotConfigured):
        return NOT_CONFIGURED_MESSAGE
    return GENERIC_FAILURE_MESSAGE
