# backend/tests/test_contact_endpoint.py
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from contact_relay.core.errors import MailSendFailed
from contact_relay.core.settings import settings
from contact_relay.main import app

client = TestClient(app)

VALID_FORM = {
    "name": "田中太郎",
    "email": "tanaka@example.com",
    "phone": "03-1234-5678",
    "message": "相談したいです",
    "contact_method_summary": "メールでの連絡を希望",
    "agreement": "on",
}


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "contact_log_dir", str(tmp_path))
    monkeypatch.setattr(settings, "contact_recipient", "inbox@example.com")
    return tmp_path


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_send_mail(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("contact_relay.routers.contact.send_mail", fake_send_mail)
    return calls


def read_events(log_dir):
    path = log_dir / "contact.log"
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def as_multipart(form):
    return [(key, (None, value)) for key, value in form.items()]


def test_well_formed_request_sends_mail(log_dir, sent):
    resp = client.post("/contact", files=as_multipart(VALID_FORM), headers={"User-Agent": "pytest-agent"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "メールを送信しました。"}

    assert len(sent) == 1
    mail = sent[0]
    assert mail["recipient"] == "inbox@example.com"
    assert mail["subject"] == "【サングッディーズ】お問い合わせ：田中太郎様より"
    assert mail["reply_to"] == "tanaka@example.com"
    assert "--- お問い合わせ内容 ---\r\n相談したいです\r\n" in mail["body"]
    assert "お電話番号：03-1234-5678" in mail["body"]
    assert "ユーザーエージェント：pytest-agent" in mail["body"]

    events = read_events(log_dir)
    assert [e["event"] for e in events] == ["REQUEST_RECEIVED", "MAIL_SENT"]
    assert events[1]["context"]["recipient"] == "inbox@example.com"
    assert events[1]["context"]["name"] == "田中太郎"
    assert events[0]["context"]["agreement"] == "accepted"


def test_missing_agreement_is_rejected_with_422(log_dir, sent):
    form = {k: v for k, v in VALID_FORM.items() if k != "agreement"}
    resp = client.post("/contact", data=form)

    assert resp.status_code == 422
    data = resp.json()
    assert data["success"] is False
    assert data["message"] == "VALIDATION_FAILED"
    assert data["errors"]["agreement"] == "個人情報取り扱いへの同意が必要です。"
    assert sent == []

    events = read_events(log_dir)
    assert [e["event"] for e in events] == ["REQUEST_RECEIVED", "VALIDATION_FAILED"]
    assert events[0]["context"]["agreement"] == "missing"
    assert "agreement" in events[1]["context"]["errors"]


def test_agreement_only_accepts_on_or_1(sent):
    resp = client.post("/contact", data={**VALID_FORM, "agreement": "1"})
    assert resp.status_code == 200

    resp = client.post("/contact", data={**VALID_FORM, "agreement": "yes"})
    assert resp.status_code == 422
    assert "agreement" in resp.json()["errors"]


def test_empty_request_reports_every_required_field(sent):
    resp = client.post("/contact", data={})

    assert resp.status_code == 422
    assert set(resp.json()["errors"]) == {"name", "email", "message", "agreement"}


def test_server_checks_email_and_phone_format(sent):
    resp = client.post("/contact", data={**VALID_FORM, "email": "foo@bar", "phone": "abc"})

    assert resp.status_code == 422
    errors = resp.json()["errors"]
    assert errors["email"] == "正しい形式のメールアドレスを入力してください。"
    assert errors["phone"] == "電話番号は数字とハイフンで入力してください。"


def test_repeated_field_uses_first_value_trimmed(sent):
    resp = client.post("/contact", data={**VALID_FORM, "name": ["  最初  ", "二番目"]})

    assert resp.status_code == 200
    assert sent[0]["subject"].endswith("：最初様より")


def test_missing_phone_and_summary_use_placeholders(log_dir, sent):
    form = {k: v for k, v in VALID_FORM.items() if k not in ("phone", "contact_method_summary")}
    resp = client.post("/contact", data=form)

    assert resp.status_code == 200
    assert "お電話番号：未入力" in sent[0]["body"]
    assert "ご希望の連絡方法：指定なし" in sent[0]["body"]
    received = read_events(log_dir)[0]["context"]
    assert received["phone"] == "未入力"
    assert received["contact_method"] == "指定なし"


def test_long_message_is_previewed_in_log(log_dir, sent):
    resp = client.post("/contact", data={**VALID_FORM, "message": "あ" * 100})

    assert resp.status_code == 200
    preview = read_events(log_dir)[0]["context"]["message_preview"]
    assert preview == "あ" * 59 + "…"
    assert "あ" * 100 in sent[0]["body"]


def test_mail_failure_returns_500(log_dir, monkeypatch):
    def failing_send_mail(**kwargs):
        raise MailSendFailed("SMTPServerDisconnected: Connection unexpectedly closed")

    monkeypatch.setattr("contact_relay.routers.contact.send_mail", failing_send_mail)

    resp = client.post("/contact", data=VALID_FORM)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "MAIL_SEND_FAILED"}
    failed = read_events(log_dir)[-1]
    assert failed["event"] == "MAIL_SEND_FAILED"
    assert failed["context"]["error"].startswith("SMTPServerDisconnected")
    assert failed["context"]["recipient"] == "inbox@example.com"


@pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "PROPFIND"])
def test_non_post_is_rejected_without_side_effects(method, log_dir, sent):
    resp = client.request(method, "/contact")

    assert resp.status_code == 405
    assert resp.headers["allow"] == "POST"
    if method != "HEAD":
        assert resp.json() == {"success": False, "message": "METHOD_NOT_ALLOWED"}
    assert sent == []
    assert not (log_dir / "contact.log").exists()


def test_other_paths_keep_default_error_bodies():
    resp = client.post("/health")
    assert resp.status_code == 405
    assert resp.json() == {"detail": "Method Not Allowed"}

    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}


@pytest.mark.parametrize("email", ["t@example.test", "x@y.co", "first.last@example.co.jp"])
def test_server_accepts_what_the_page_accepts(email, sent):
    resp = client.post("/contact", data={**VALID_FORM, "email": email})

    assert resp.status_code == 200
    assert sent[0]["reply_to"] == email


@pytest.mark.parametrize("email", ["a@b.local", "user@foo.invalid", "root@localhost"])
def test_server_rejects_reserved_mail_domains(email, sent):
    resp = client.post("/contact", data={**VALID_FORM, "email": email})

    assert resp.status_code == 422
    assert resp.json()["errors"]["email"] == "正しい形式のメールアドレスを入力してください。"
    assert sent == []


def test_event_log_writes_run_off_the_event_loop(monkeypatch, sent):
    calls = []

    def recording_log(event, context=None):
        try:
            asyncio.get_running_loop()
            on_loop = True
        except RuntimeError:
            on_loop = False
        calls.append((event, on_loop))

    monkeypatch.setattr("contact_relay.routers.contact.log_contact_event", recording_log)

    resp = client.post("/contact", data=VALID_FORM)

    assert resp.status_code == 200
    assert calls == [("REQUEST_RECEIVED", False), ("MAIL_SENT", False)]
