import logging
import smtplib
from email.message import EmailMessage

from future_echoes import config

logger = logging.getLogger(__name__)

SUBJECT = "Your Virtual Capsule is Now Available!"


def render_reveal_email(recipient, template_data) -> str:
    user_name = recipient.split("@")[0] or "there"
    reveal_at = template_data["reveal_at"]
    reveal_date = reveal_at.strftime("%B %d, %Y").replace(" 0", " ")
    summary = template_data.get("summary") or {}
    lines = [
        f"Hi {user_name},",
        "",
        "Your Virtual Capsule is now available to view!",
        "",
        f"You set the reveal date for {reveal_date}, and the moment has arrived! "
        "We hope you're excited to see what you wrote to your future self, and how "
        "your feelings have evolved since then.",
    ]
    if summary.get("narrative"):
        lines += ["", summary["narrative"]]
    if summary.get("positive_note"):
        lines += ["", summary["positive_note"]]
    lines += [
        "",
        f"View your capsule: {config.APP_URL}/capsules",
        "",
        "Thank you for using Future Echoes.",
        "",
        "If you didn't create this time capsule, please disregard this email.",
    ]
    return "\n".join(lines)


class LogNotificationSender:
    """Writes notifications to the log; used when SMTP is not configured."""

    def send(self, recipient, template_data) -> bool:
        logger.info(
            f"Notification: Capsule {template_data['capsule_id']} is now open for {recipient} "
            f"(reveal at {template_data['reveal_at']})"
        )
        return True


class EmailNotificationSender:
    def __init__(self, host, port=587, user="", password="", sender=None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or config.SMTP_FROM

    def send(self, recipient, template_data) -> bool:
        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.set_content(render_reveal_email(recipient, template_data))
        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {recipient}: {str(e)}")
            return False
        logger.info(f"Email sent to {recipient} for capsule {template_data['capsule_id']}")
        return True


def build_sender():
    if config.SMTP_HOST:
        return EmailNotificationSender(
            config.SMTP_HOST, config.SMTP_PORT, config.SMTP_USER, config.SMTP_PASSWORD
        )
    return LogNotificationSender()
