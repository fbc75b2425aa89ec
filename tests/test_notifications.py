"""Tests for subscriptions, email and SMS (masjid_sign/plugins/notifications)."""

from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from masjid_sign.plugins.notifications.mailer import Mailer
from masjid_sign.plugins.notifications.service import (
    CONTACT,
    MEMBERSHIP,
    QURAN_REQUEST,
    announcement_email,
    form_email,
    get_subscriber_emails,
    notify_announcement,
    send_form,
    subscribe,
    unsubscribe,
)
from masjid_sign.plugins.notifications.sms import SinchSms

SMTP = {
    "smtp_host": "smtp.example.org",
    "smtp_port": 587,
    "smtp_username": "sign@example.org",
    "smtp_password": "secret",
    "from_email": "sign@example.org",
    "from_name": "Islamic Society",
    "recipient": "office@example.org",
}

SMS = {
    "enabled": True,
    "service_plan_id": "plan",
    "api_key": "key",
    "api_secret": "shh",
    "from_number": "+18125550100",
    "to_number": "+18125550199",
}

ANNOUNCEMENT = {
    "id": 1,
    "title": "Eid prayer",
    "description": "Two congregations this year.",
    "announcement_date": "2025-03-30",
    "image_url": "http://sign.local/files/announcement-images/eid.png",
}


# ----------------------------------------------------------------------------
# Mailer
# ----------------------------------------------------------------------------


class TestMailer:
    def test_sends_one_message_to_all_recipients(self):
        with patch("masjid_sign.plugins.notifications.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value
            Mailer(SMTP).send_email(["a@example.org", "b@example.org"], "Subject", "text", "<p>html</p>")

        smtp_cls.assert_called_once_with("smtp.example.org", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("sign@example.org", "secret")
        from_addr, to_addrs, message = server.sendmail.call_args.args
        assert from_addr == "sign@example.org"
        assert to_addrs == ["a@example.org", "b@example.org"]
        assert "To: sign@example.org" in message
        assert "a@example.org" not in message
        server.quit.assert_called_once()

    def test_reply_to_header(self):
        with patch("masjid_sign.plugins.notifications.mailer.smtplib.SMTP") as smtp_cls:
            Mailer(SMTP).send_email(["office@example.org"], "Subject", "text", reply_to="visitor@example.org")
        message = smtp_cls.return_value.sendmail.call_args.args[2]
        assert "Reply-To: visitor@example.org" in message

    def test_unconfigured(self):
        with pytest.raises(RuntimeError):
            Mailer({}).send_email(["a@example.org"], "Subject", "text")

    def test_smtp_failure_propagates_and_quits(self):
        with patch("masjid_sign.plugins.notifications.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.sendmail.side_effect = OSError("connection reset")
            with pytest.raises(OSError):
                Mailer(SMTP).send_email(["a@example.org"], "Subject", "text")
            smtp_cls.return_value.quit.assert_called_once()


# ----------------------------------------------------------------------------
# SMS
# ----------------------------------------------------------------------------


class TestSinchSms:
    def test_posts_batch(self):
        response = MagicMock()
        response.json.return_value = {"id": "batch-1"}
        with patch("masjid_sign.plugins.notifications.sms.requests.post", return_value=response) as post:
            result = SinchSms(SMS).send("+18125550199", "New Quran Request")

        assert result == {"id": "batch-1"}
        assert post.call_args.args[0] == "https://sms.api.sinch.com/xms/v1/plan/batches"
        assert post.call_args.kwargs["auth"] == ("key", "shh")
        assert post.call_args.kwargs["json"] == {
            "from": "+18125550100",
            "to": ["+18125550199"],
            "body": "New Quran Request",
        }

    def test_disabled_is_not_configured(self):
        assert SinchSms(dict(SMS, enabled=False)).configured is False

    def test_http_error_propagates(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401")
        with patch("masjid_sign.plugins.notifications.sms.requests.post", return_value=response):
            with pytest.raises(requests.HTTPError):
                SinchSms(SMS).send("+18125550199", "hi")


# ----------------------------------------------------------------------------
# Subscriptions
# ----------------------------------------------------------------------------


@pytest.mark.usefixtures("db")
class TestSubscriptions:
    def test_subscribe_is_idempotent_and_normalized(self):
        _, created = subscribe("  Reader@Example.org ")
        _, again = subscribe("reader@example.org")
        assert (created, again) == (True, False)
        assert get_subscriber_emails() == ["reader@example.org"]

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            subscribe("not-an-email")

    def test_unsubscribe(self):
        subscribe("reader@example.org")
        assert unsubscribe("reader@example.org") is True
        assert unsubscribe("reader@example.org") is False


# ----------------------------------------------------------------------------
# Announcement email
# ----------------------------------------------------------------------------


class TestAnnouncementEmail:
    def test_content(self):
        subject, text, body = announcement_email(ANNOUNCEMENT, "Islamic Society")
        assert subject == "New Announcement from Islamic Society: Eid prayer"
        assert "Date: March 30, 2025" in text
        assert "Two congregations this year." in text
        assert '<img src="http://sign.local/files/announcement-images/eid.png"' in body

    def test_html_is_escaped(self):
        _, _, body = announcement_email(dict(ANNOUNCEMENT, title="<b>Eid</b>"), "Islamic Society")
        assert "&lt;b&gt;Eid&lt;/b&gt;" in body


@pytest.mark.usefixtures("db")
class TestNotifyAnnouncement:
    def test_no_subscribers_is_success(self):
        with patch("masjid_sign.plugins.notifications.service.Mailer") as mailer_cls:
            assert notify_announcement(ANNOUNCEMENT, {"notifications": SMTP}) is True
        mailer_cls.assert_not_called()

    def test_sends_to_every_subscriber(self):
        subscribe("a@example.org")
        subscribe("b@example.org")
        with patch("masjid_sign.plugins.notifications.service.Mailer") as mailer_cls:
            assert notify_announcement(ANNOUNCEMENT, {"notifications": SMTP, "sign": {"mosque_name": "ISE"}})
        recipients, subject = mailer_cls.return_value.send_email.call_args.args[:2]
        assert recipients == ["a@example.org", "b@example.org"]
        assert subject == "New Announcement from ISE: Eid prayer"

    def test_failure_returns_false(self):
        subscribe("a@example.org")
        with patch("masjid_sign.plugins.notifications.service.Mailer") as mailer_cls:
            mailer_cls.return_value.send_email.side_effect = OSError("smtp down")
            assert notify_announcement(ANNOUNCEMENT, {"notifications": SMTP}) is False


# ----------------------------------------------------------------------------
# Public forms
# ----------------------------------------------------------------------------


class TestForms:
    def test_contact_email(self):
        subject, body = form_email(CONTACT, {"name": "Sara", "email": "sara@example.org",
                                             "subject": "Parking", "message": "Where?"})
        assert subject == "New Contact Form Submission: Parking"
        assert "Message: Where?" in body

    def test_quran_request_email(self):
        subject, body = form_email(QURAN_REQUEST, {"name": "Sam", "email": "sam@example.org",
                                                   "address": "1 Main St", "city": "Evansville",
                                                   "state": "IN", "zip": "47708"})
        assert subject == "New Quran Request"
        assert "Address: 1 Main St, Evansville, IN 47708" in body

    def test_membership_email(self):
        subject, _ = form_email(MEMBERSHIP, {"name": "Omar"})
        assert subject == "New Membership Application: Omar"

    def test_unknown_form(self):
        with pytest.raises(ValueError):
            form_email("complaint", {})

    def test_send_form_emails_recipient_and_texts(self):
        data = {"name": "Sara", "email": "sara@example.org", "subject": "Parking", "message": "Where?"}
        with patch("masjid_sign.plugins.notifications.service.Mailer") as mailer_cls, \
                patch("masjid_sign.plugins.notifications.service.SinchSms") as sms_cls:
            sms_cls.return_value.configured = True
            sms_cls.return_value.to_number = "+18125550199"
            assert send_form(CONTACT, data, {"notifications": dict(SMTP, sms=SMS)}) is True

        args, kwargs = mailer_cls.return_value.send_email.call_args
        assert args[0] == ["office@example.org"]
        assert kwargs["reply_to"] == "sara@example.org"
        sms_cls.return_value.send.assert_called_once_with("+18125550199", "New Contact Form Submission: Parking")

    def test_missing_recipient_reports_failure(self):
        with patch("masjid_sign.plugins.notifications.service.Mailer") as mailer_cls:
            assert send_form(MEMBERSHIP, {"name": "Omar"}, {"notifications": dict(SMTP, recipient="")}) is False
        mailer_cls.return_value.send_email.assert_not_called()

    def test_sms_failure_does_not_fail_the_submission(self):
        with patch("masjid_sign.plugins.notifications.service.Mailer"), \
                patch("masjid_sign.plugins.notifications.service.SinchSms") as sms_cls:
            sms_cls.return_value.configured = True
            sms_cls.return_value.to_number = "+18125550199"
            sms_cls.return_value.send.side_effect = requests.HTTPError("401")
            assert send_form(MEMBERSHIP, {"name": "Omar"}, {"notifications": SMTP}) is True
