# contact_relay/client/fields.py
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from contact_relay.core.rules import (
    CLIENT_EMAIL_PATTERN,
    CLIENT_MESSAGES,
    NOT_ENTERED,
    NOT_SPECIFIED,
    FieldIssue,
    is_valid_phone,
    issues_to_messages,
    summarize_contact_methods,
)


@dataclass
class FormDraft:
    """Raw, user-editable form input. Nothing here is trimmed or checked."""
    name: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    agreement: bool = False
    contact_method: List[str] = field(default_factory=list)

    def reset(self) -> None:
        self.name = ""
        self.email = ""
        self.phone = ""
        self.message = ""
        self.agreement = False
        self.contact_method = []


@dataclass(frozen=True)
class FormFields:
    name: str
    email: str
    phone: str
    message: str
    agreement: bool
    contact_method: Tuple[str, ...] = ()
    # untouched copy of the input these values were derived from
    source: Optional[FormDraft] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_draft(cls, draft: FormDraft) -> "FormFields":
        return cls(
            name=(draft.name or "").strip(),
            email=(draft.email or "").strip(),
            phone=(draft.phone or "").strip(),
            message=(draft.message or "").strip(),
            agreement=bool(draft.agreement),
            contact_method=tuple(draft.contact_method or ()),
            source=replace(draft, contact_method=list(draft.contact_method or ())),
        )

    @property
    def contact_method_summary(self) -> str:
        return summarize_contact_methods(self.contact_method)

    def confirmation_values(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone or NOT_ENTERED,
            "message": self.message,
            "contact_method": self.contact_method_summary or NOT_SPECIFIED,
        }


def collect_issues(fields: FormFields) -> Dict[str, FieldIssue]:
    # every rule runs so the user sees all problems at once
    issues: Dict[str, FieldIssue] = {}
    if not fields.name:
        issues["name"] = FieldIssue.EMPTY
    if not fields.email:
        issues["email"] = FieldIssue.EMPTY
    elif not CLIENT_EMAIL_PATTERN.match(fields.email):
        issues["email"] = FieldIssue.INVALID_FORMAT
    if fields.phone and not is_valid_phone(fields.phone):
        issues["phone"] = FieldIssue.INVALID_FORMAT
    if not fields.message:
        issues["message"] = FieldIssue.EMPTY
    if not fields.agreement:
        issues["agreement"] = FieldIssue.NOT_ACCEPTED
    return issues


def validate_fields(fields: FormFields) -> Dict[str, str]:
    return issues_to_messages(collect_issues(fields), CLIENT_MESSAGES)
