from unittest.mock import patch

import pytest

from site_api.db.supabase import RecordStoreError
from site_api.routes.lead import FRIENDLY_ERROR
from site_api.utils.mailer import MailDeliveryError

VALID_LEAD = {
    "name": "  Ada Lovelace ",
    "email": "ada@example.com",
    "message": "We need our invoices synced to the CRM.",
    "source": "quote",
}


def test_preflight_returns_cors_headers(client):
    resp = client.options("/api/lead")
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"


@pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "PATCH", "DELETE", "TRACE"])
def test_other_methods_are_rejected_with_allow_header(client, method):
    resp = client.request(method, "/api/lead")
    assert resp.status_code == 405
    assert resp.headers["allow"] == "POST, OPTIONS"
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"
    if method != "HEAD":
        assert resp.json() == {"error": "Method Not Allowed"}


@pytest.mark.parametrize("missing", ["name", "email", "message"])
@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_missing_field_is_rejected_without_side_effects(mock_insert, mock_send, client, missing):
    payload = {**VALID_LEAD, missing: "   "}
    resp = client.post("/api/lead", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Please include your name, email, and message."}
    mock_insert.assert_not_called()
    mock_send.assert_not_called()


@pytest.mark.parametrize("email", ["ada", "ada@example", "ada @example.com", "@example.com"])
@patch("site_api.routes.lead.insert_lead")
def test_invalid_email_is_rejected(mock_insert, client, email):
    resp = client.post("/api/lead", json={**VALID_LEAD, "email": email})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Please use a valid email address."}
    mock_insert.assert_not_called()


@patch("site_api.routes.lead.insert_lead")
def test_unparseable_body_counts_as_empty(mock_insert, client):
    resp = client.post(
        "/api/lead",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    mock_insert.assert_not_called()


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_valid_lead_is_stored_and_notified(mock_insert, mock_send, client, settings):
    settings.email_autoreply = False
    resp = client.post("/api/lead", json=VALID_LEAD)

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers["access-control-allow-origin"] == "*"

    mock_insert.assert_called_once()
    lead = mock_insert.call_args.args[1]
    assert lead.as_record() == {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "message": "We need our invoices synced to the CRM.",
        "source": "quote",
    }

    mock_send.assert_called_once()
    notification = mock_send.call_args.args[1]
    assert notification.to == "team@example.com"
    assert notification.reply_to == "ada@example.com"
    assert notification.subject == "New lead from Ada Lovelace"


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_source_defaults_to_web(mock_insert, mock_send, client):
    payload = {key: value for key, value in VALID_LEAD.items() if key != "source"}
    resp = client.post("/api/lead", json=payload)
    assert resp.status_code == 200
    assert mock_insert.call_args.args[1].source == "web"


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_autoreply_goes_to_submitter(mock_insert, mock_send, client):
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 200
    assert mock_send.call_count == 2
    ack = mock_send.call_args_list[1].args[1]
    assert ack.to == "ada@example.com"
    assert ack.reply_to == "team@example.com"


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_store_failure_skips_notification(mock_insert, mock_send, client):
    mock_insert.side_effect = RecordStoreError("leads", 500, "insert failed")
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 500
    assert resp.json() == {"error": FRIENDLY_ERROR}
    mock_send.assert_not_called()


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_notification_failure_returns_502(mock_insert, mock_send, client):
    mock_send.side_effect = MailDeliveryError("Resend returned 422")
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 502
    assert resp.json() == {"error": FRIENDLY_ERROR}
    mock_insert.assert_called_once()
    # no auto-reply after a failed notification
    mock_send.assert_called_once()


@patch("site_api.utils.mailer.send_email")
@patch("site_api.routes.lead.insert_lead")
def test_autoreply_failure_still_returns_ok(mock_insert, mock_send, client):
    mock_send.side_effect = [None, MailDeliveryError("mailbox unavailable")]
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert mock_send.call_count == 2


@patch("site_api.routes.lead.insert_lead")
def test_missing_configuration_returns_503(mock_insert, client, settings, caplog):
    settings.supabase_service_role = ""
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 503
    assert resp.json() == {"error": FRIENDLY_ERROR}
    assert "SUPABASE_SERVICE_ROLE" not in resp.text
    assert "SUPABASE_SERVICE_ROLE" in caplog.text
    mock_insert.assert_not_called()


@patch("site_api.routes.lead.insert_lead")
def test_unexpected_error_is_normalized(mock_insert, client):
    mock_insert.side_effect = KeyError("surprise")
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 500
    assert resp.json() == {"error": FRIENDLY_ERROR}


@patch("site_api.utils.mailer.smtplib.SMTP_SSL")
@patch("site_api.routes.lead.insert_lead")
def test_multiline_name_is_delivered_over_smtp(mock_insert, mock_smtp_cls, client, settings):
    settings.mail_transport = "smtp"
    settings.smtp_user = "bot@example.com"
    settings.smtp_pass = "app-password"
    payload = {**VALID_LEAD, "name": "Ada\nLovelace\r\t", "message": "line one\nline two"}

    resp = client.post("/api/lead", json=payload)

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    mock_insert.assert_called_once()
    smtp = mock_smtp_cls.return_value.__enter__.return_value
    # notification then acknowledgement
    assert smtp.send_message.call_count == 2
    notification = smtp.send_message.call_args_list[0].args[0]
    assert notification["Subject"] == "New lead from Ada Lovelace"
    assert notification["Reply-To"] == "ada@example.com"


@patch("site_api.routes.lead.insert_lead")
def test_missing_configuration_logs_every_name(mock_insert, client, settings, caplog):
    settings.supabase_url = ""
    settings.email_to = ""
    resp = client.post("/api/lead", json=VALID_LEAD)
    assert resp.status_code == 503
    assert "SUPABASE_URL, EMAIL_TO" in caplog.text
    assert "EMAIL_TO" not in resp.text
