# contact_relay/core/mailer.py
import logging
import smtplib
from email.header import Header
from email.mime.text import MIMEText
from email.utils import formatdate

from contact_relay.core.errors import MailSendFailed
from contact_relay.core.settings import settings
from contact_relay.lib.text import sanitize_header

log = logging.getLogger("uvicorn.error")

X_MAILER = "contact-relay"


def build_message(*, recipient: str, subject: str, body: str, from_addr: str, reply_to: str) -> MIMEText:
    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = Header(subject, "utf-8")
    msg["From"] = sanitize_header(from_addr)
    msg["Reply-To"] = sanitize_header(reply_to)
    msg["To"] = recipient
    msg["Date"] = formatdate(localtime=True)
    msg["X-Mailer"] = X_MAILER
    return msg


def send_mail(*, recipient: str, subject: str, body: str, from_addr: str, reply_to: str) -> None:
    """Hand the message to the configured SMTP server (blocking).

    Raises MailSendFailed carrying the SMTP/socket error text.
    """
    msg = build_message(
        recipient=recipient,
        subject=subject,
        body=body,
        from_addr=from_addr,
        reply_to=reply_to,
    )
    smtp_cls = smtplib.SMTP_SSL if settings.smtp_use_ssl else smtplib.SMTP
    try:
        with smtp_cls(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as smtp:
            if settings.smtp_starttls and not settings.smtp_use_ssl:
                smtp.starttls()
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        log.warning(f"[mail] send to {recipient} via {settings.smtp_host}:{settings.smtp_port} failed: {exc}")
        raise MailSendFailed(f"{type(exc).__name__}: {exc}") from exc
