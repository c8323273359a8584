from fastapi.testclient import TestClient

from contact_api.core.mailer import EAUTH, ECONNECTION, EUNKNOWN
from contact_api.main import MAX_BODY_BYTES, app

from fakes import FakeTransport

client = TestClient(app)

JANE = {
    "name": "Jane Doe",
    "email": "JANE@Example.com",
    "subject": "Hi",
    "message": "This is a sufficiently long message.",
}


def test_short_fields_return_all_validation_errors(wire_app):
    fake = FakeTransport()
    wire_app(fake)
    resp = client.post("/api/contact", json={"name": "J", "email": "a@b.com", "message": "short"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert "Name must be at least 2 characters long" in body["errors"]
    assert "Message must be at least 10 characters long" in body["errors"]
    assert fake.sent == []


def test_empty_body_reports_every_missing_field(wire_app):
    wire_app(FakeTransport())
    resp = client.post("/api/contact")
    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        "Name must be at least 2 characters long",
        "Valid email address is required",
        "Message must be at least 10 characters long",
    ]


def test_valid_submission_sends_notification(wire_app):
    fake = FakeTransport()
    wire_app(fake, recipient_email="inbox@example.org")
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Message sent successfully! I'll get back to you soon."
    assert body["data"]["name"] == "Jane Doe"
    assert body["data"]["timestamp"].endswith("Z")

    [sent] = fake.sent
    assert sent.reply_to_address == "jane@example.com"
    assert sent.to_address == "inbox@example.org"
    assert sent.from_address == "owner@gmail.com"
    assert sent.subject_line == "Hi"


def test_form_encoded_submission_is_accepted(wire_app):
    fake = FakeTransport()
    wire_app(fake)
    resp = client.post("/api/contact", data=JANE)
    assert resp.status_code == 200
    assert fake.sent[0].reply_to_address == "jane@example.com"


def test_auth_failure_is_generic_and_skips_acknowledgment(wire_app):
    fake = FakeTransport(failures=[EAUTH])
    wire_app(fake, send_auto_reply=True, environment="production")
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Email authentication failed. Please contact the administrator.",
    }
    assert len(fake.sent) == 1


def test_failure_detail_is_exposed_outside_production(wire_app):
    wire_app(FakeTransport(failures=[ECONNECTION]), environment="development")
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Email service connection failed. Please try again later."
    assert body["error"] == "ECONNECTION from fake transport"


def test_unknown_transport_failure(wire_app):
    wire_app(FakeTransport(failures=[EUNKNOWN]), environment="production")
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to send message. Please try again later."
    assert "error" not in resp.json()


def test_acknowledgment_failure_does_not_fail_request(wire_app):
    fake = FakeTransport(failures=[None, ECONNECTION])
    wire_app(fake, send_auto_reply=True)
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert [m.to_address for m in fake.sent] == ["owner@gmail.com", "jane@example.com"]


def test_acknowledgment_sent_when_enabled(wire_app):
    fake = FakeTransport()
    wire_app(fake, send_auto_reply=True, auto_reply_name="Mordecai")
    assert client.post("/api/contact", json=JANE).status_code == 200
    notification, ack = fake.sent
    assert ack.to_address == "jane@example.com"
    assert ack.from_display_name == "Mordecai"
    assert "Hi Jane Doe," in ack.text_body


def test_no_acknowledgment_when_disabled(wire_app):
    fake = FakeTransport()
    wire_app(fake, send_auto_reply=False)
    client.post("/api/contact", json=JANE)
    assert len(fake.sent) == 1


def test_malformed_json_is_a_validation_failure(wire_app):
    wire_app(FakeTransport())
    resp = client.post("/api/contact", content="{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Request body must be valid JSON"]


def test_non_object_body_is_a_validation_failure(wire_app):
    wire_app(FakeTransport())
    resp = client.post("/api/contact", json=["Jane", "jane@example.com"])
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Request body must be a JSON object"]


def test_non_string_field_is_a_validation_failure(wire_app):
    fake = FakeTransport()
    wire_app(fake)
    resp = client.post("/api/contact", json={**JANE, "name": 42})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert body["errors"][0].startswith("name:")
    assert fake.sent == []


def test_oversized_body_is_rejected(wire_app):
    fake = FakeTransport()
    wire_app(fake)
    resp = client.post(
        "/api/contact",
        content=b"x" * (MAX_BODY_BYTES + 1),
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 413
    assert resp.json()["success"] is False
    assert fake.sent == []


def test_cors_preflight_allows_configured_origin():
    resp = client.options(
        "/api/contact",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_cors_rejects_unknown_origin():
    resp = client.options(
        "/api/contact",
        headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert "access-control-allow-origin" not in resp.headers


def test_malformed_multipart_is_a_validation_failure(wire_app):
    fake = FakeTransport()
    wire_app(fake)
    resp = client.post("/api/contact", content=b"garbage", headers={"content-type": "multipart/form-data"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"][0].startswith("Malformed form body")
    assert fake.sent == []


class _AsciiOnlyTransport(FakeTransport):
    def send_mail(self, message):
        super().send_mail(message)
        "pässword".encode("ascii")


def test_unexpected_transport_error_gets_generic_failure_message(wire_app):
    wire_app(_AsciiOnlyTransport(), send_auto_reply=True, environment="production")
    resp = client.post("/api/contact", json=JANE)
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Failed to send message. Please try again later.",
    }
