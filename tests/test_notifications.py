"""Tests for reveal notifications and the periodic task."""

import smtplib
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from future_echoes import tasks
from future_echoes.capsules import utcnow
from future_echoes.notifications import (
    SUBJECT, EmailNotificationSender, LogNotificationSender, render_reveal_email,
)

from conftest import DAY0, FakeSender

TEMPLATE_DATA = {
    "capsule_id": 7,
    "reveal_at": datetime(2026, 3, 5, 9, 0),
    "summary": {"narrative": "A balanced journey.", "positive_note": "Keep reflecting."},
}


class TestRenderEmail:

    def test_contents(self):
        body = render_reveal_email("alice@example.com", TEMPLATE_DATA)
        assert body.startswith("Hi alice,")
        assert "March 5, 2026" in body
        assert "A balanced journey." in body
        assert "Keep reflecting." in body
        assert "/capsules" in body

    def test_without_summary(self):
        body = render_reveal_email("bob@example.com", {"capsule_id": 1, "reveal_at": DAY0})
        assert "Hi bob," in body


class TestSenders:

    def test_log_sender(self):
        assert LogNotificationSender().send("alice@example.com", TEMPLATE_DATA) is True

    def test_email_sender(self):
        with patch("future_echoes.notifications.smtplib.SMTP") as smtp:
            server = smtp.return_value.__enter__.return_value
            sender = EmailNotificationSender("smtp.test", 587, "user", "pw", sender="echoes@test")
            assert sender.send("alice@example.com", TEMPLATE_DATA) is True
        server.login.assert_called_once_with("user", "pw")
        msg = server.send_message.call_args.args[0]
        assert msg["Subject"] == SUBJECT
        assert msg["To"] == "alice@example.com"

    def test_email_sender_failure(self):
        with patch("future_echoes.notifications.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value.send_message.side_effect = smtplib.SMTPException("rejected")
            sender = EmailNotificationSender("smtp.test")
            assert sender.send("alice@example.com", TEMPLATE_DATA) is False


class TestRevealTask:

    def test_runs_a_sweep(self, session_factory, make_capsule, monkeypatch):
        capsule = make_capsule(created_at=utcnow() - timedelta(days=3), days=2)
        sender = FakeSender()
        monkeypatch.setattr(tasks, "SessionLocal", session_factory)
        monkeypatch.setattr(tasks, "build_sender", lambda: sender)

        result = tasks.reveal_due_capsules()

        assert result["revealed_count"] == 1
        assert sender.sent[0][1]["capsule_id"] == capsule.id

    def test_closes_session_on_error(self, monkeypatch):
        db = MagicMock()
        db.query.side_effect = RuntimeError("boom")
        monkeypatch.setattr(tasks, "SessionLocal", lambda: db)
        with pytest.raises(RuntimeError):
            tasks.reveal_due_capsules()
        db.close.assert_called_once()
