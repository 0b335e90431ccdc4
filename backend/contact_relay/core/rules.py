# contact_relay/core/rules.py
"""Field rules shared by the form controller and the mail relay endpoint.

Both sides run their own validation; only the definitions live here.
"""
import re
from enum import Enum
from typing import Dict, Iterable

# Lightweight shape check used by the browser-side controller
CLIENT_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]{10,}$")

AGREEMENT_TRUTHY = ("on", "1")

NOT_ENTERED = "未入力"
NOT_SPECIFIED = "指定なし"
UNKNOWN = "不明"

CONTACT_METHOD_LABELS: Dict[str, str] = {
    "phone": "電話での連絡を希望",
    "email": "メールでの連絡を希望",
}
CONTACT_METHOD_SEPARATOR = " / "

MESSAGE_PREVIEW_WIDTH = 120
MESSAGE_PREVIEW_MARKER = "…"


class FieldIssue(str, Enum):
    EMPTY = "EMPTY"
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_ACCEPTED = "NOT_ACCEPTED"


CLIENT_MESSAGES: Dict[tuple, str] = {
    ("name", FieldIssue.EMPTY): "お名前を入力してください。",
    ("email", FieldIssue.EMPTY): "メールアドレスを入力してください。",
    ("email", FieldIssue.INVALID_FORMAT): "正しい形式のメールアドレスを入力してください。",
    ("phone", FieldIssue.INVALID_FORMAT): "電話番号は数字とハイフンで入力してください。",
    ("message", FieldIssue.EMPTY): "ご相談内容を入力してください。",
    ("agreement", FieldIssue.NOT_ACCEPTED): "同意が必要です。",
}

# The endpoint words two messages differently from the page
SERVER_MESSAGES: Dict[tuple, str] = {
    **CLIENT_MESSAGES,
    ("message", FieldIssue.EMPTY): "お問い合わせ内容を入力してください。",
    ("agreement", FieldIssue.NOT_ACCEPTED): "個人情報取り扱いへの同意が必要です。",
}


def is_valid_phone(phone: str) -> bool:
    return PHONE_PATTERN.match(phone) is not None


def summarize_contact_methods(values: Iterable[str]) -> str:
    """Join checked contact methods into a readable phrase; "" when none."""
    return CONTACT_METHOD_SEPARATOR.join(
        CONTACT_METHOD_LABELS.get(v, v) for v in values
    )


def issues_to_messages(issues: Dict[str, FieldIssue], messages: Dict[tuple, str]) -> Dict[str, str]:
    return {field: messages[(field, issue)] for field, issue in issues.items()}
