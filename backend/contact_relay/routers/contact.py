# contact_relay/routers/contact.py
from typing import Dict, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.datastructures import FormData
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_relay.core.errors import MailSendFailed
from contact_relay.core.event_log import format_timestamp, log_contact_event
from contact_relay.core.mailer import send_mail
from contact_relay.core.rules import (
    AGREEMENT_TRUTHY,
    MESSAGE_PREVIEW_MARKER,
    MESSAGE_PREVIEW_WIDTH,
    NOT_ENTERED,
    NOT_SPECIFIED,
    SERVER_MESSAGES,
    UNKNOWN,
    FieldIssue,
    is_valid_phone,
    issues_to_messages,
)
from contact_relay.core.settings import settings
from contact_relay.lib.text import strimwidth

router = APIRouter(tags=["contact"])

SENT_MESSAGE = "メールを送信しました。"


class DeliveryOutcome(BaseModel):
    success: bool
    message: str
    errors: Optional[Dict[str, str]] = None


class ContactSubmission(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    contact_method_summary: str = NOT_SPECIFIED
    agreement: bool = False


def _respond(status_code: int, outcome: DeliveryOutcome) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=outcome.model_dump(exclude_none=True))


def form_value(form: FormData, key: str) -> str:
    """First value for `key`, trimmed; file parts and missing keys read as ""."""
    values = form.getlist(key)
    if not values or not isinstance(values[0], str):
        return ""
    return values[0].strip()


def extract_submission(form: FormData) -> ContactSubmission:
    return ContactSubmission(
        name=form_value(form, "name"),
        email=form_value(form, "email"),
        phone=form_value(form, "phone"),
        message=form_value(form, "message"),
        contact_method_summary=form_value(form, "contact_method_summary") or NOT_SPECIFIED,
        # raw value, untrimmed: only the literal "on" / "1" counts
        agreement=form.get("agreement") in AGREEMENT_TRUTHY,
    )


def _is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False, test_environment=True)
    except EmailNotValidError:
        return False
    return True


def validate_submission(sub: ContactSubmission) -> Dict[str, str]:
    issues: Dict[str, FieldIssue] = {}
    if not sub.name:
        issues["name"] = FieldIssue.EMPTY
    if not sub.email:
        issues["email"] = FieldIssue.EMPTY
    elif not _is_valid_email(sub.email):
        issues["email"] = FieldIssue.INVALID_FORMAT
    if sub.phone and not is_valid_phone(sub.phone):
        issues["phone"] = FieldIssue.INVALID_FORMAT
    if not sub.message:
        issues["message"] = FieldIssue.EMPTY
    if not sub.agreement:
        issues["agreement"] = FieldIssue.NOT_ACCEPTED
    return issues_to_messages(issues, SERVER_MESSAGES)


def compose_subject(sub: ContactSubmission) -> str:
    return f"{settings.contact_subject_prefix}：{sub.name}様より"


def compose_body(
    sub: ContactSubmission,
    *,
    sent_at: str,
    remote_addr: Optional[str],
    user_agent: Optional[str],
) -> str:
    lines = [
        "以下の内容でお問い合わせを受け付けました。",
        "",
        f"お名前：{sub.name}",
        f"メールアドレス：{sub.email}",
        f"お電話番号：{sub.phone or NOT_ENTERED}",
        f"ご希望の連絡方法：{sub.contact_method_summary}",
        "",
        "--- お問い合わせ内容 ---",
        sub.message,
        "------------------------",
        "",
        f"送信日時：{sent_at}",
        f"送信元IP：{remote_addr or UNKNOWN}",
        f"ユーザーエージェント：{user_agent or UNKNOWN}",
    ]
    return "\r\n".join(lines)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Registered on the app: any non-POST method on the contact path gets the JSON outcome."""
    if exc.status_code == 405 and request.url.path == settings.contact_path:
        resp = _respond(405, DeliveryOutcome(success=False, message="METHOD_NOT_ALLOWED"))
        resp.headers.update(exc.headers or {})
        return resp
    return await http_exception_handler(request, exc)


async def _log_event(event: str, context: Dict) -> None:
    # file appends stay off the event loop
    await run_in_threadpool(log_contact_event, event, context)


@router.post(settings.contact_path, response_model=DeliveryOutcome)
async def submit_contact(request: Request):
    form = await request.form()
    sub = extract_submission(form)

    await _log_event("REQUEST_RECEIVED", {
        "name": sub.name,
        "email": sub.email,
        "phone": sub.phone or NOT_ENTERED,
        "contact_method": sub.contact_method_summary,
        "agreement": "accepted" if sub.agreement else "missing",
        "message_preview": strimwidth(sub.message, MESSAGE_PREVIEW_WIDTH, MESSAGE_PREVIEW_MARKER),
    })

    errors = validate_submission(sub)
    if errors:
        await _log_event("VALIDATION_FAILED", {"errors": errors})
        return _respond(422, DeliveryOutcome(success=False, message="VALIDATION_FAILED", errors=errors))

    recipient = settings.contact_recipient
    body = compose_body(
        sub,
        sent_at=format_timestamp(),
        remote_addr=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    try:
        await run_in_threadpool(
            send_mail,
            recipient=recipient,
            subject=compose_subject(sub),
            body=body,
            from_addr=settings.contact_from,
            reply_to=sub.email,
        )
    except MailSendFailed as exc:
        await _log_event("MAIL_SEND_FAILED", {
            "recipient": recipient,
            "name": sub.name,
            "email": sub.email,
            "error": exc.error,
        })
        return _respond(500, DeliveryOutcome(success=False, message="MAIL_SEND_FAILED"))

    await _log_event("MAIL_SENT", {
        "recipient": recipient,
        "name": sub.name,
        "email": sub.email,
        "contact_method": sub.contact_method_summary,
    })
    return _respond(200, DeliveryOutcome(success=True, message=SENT_MESSAGE))
