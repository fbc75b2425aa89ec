"""
Outbound email over SMTP.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional, Sequence


class Mailer:
    def __init__(self, config: Dict[str, Any]):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.smtp_host = config.get("smtp_host") or ""
        self.smtp_port = int(config.get("smtp_port") or 587)
        self.smtp_username = config.get("smtp_username") or ""
        self.smtp_password = config.get("smtp_password") or ""
        self.use_tls = bool(config.get("use_tls", True))
        self.from_email = config.get("from_email") or self.smtp_username
        self.from_name = config.get("from_name") or ""

    @property
    def configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def _create_smtp_connection(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30)
        if self.use_tls:
            server.starttls()
        if self.smtp_username:
            server.login(self.smtp_username, self.smtp_password)
        return server

    def send_email(
        self,
        recipients: Sequence[str],
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> None:
        """
        Send one message. With several recipients they are blind-copied.
        Raises on failure; callers decide whether that matters.
        """
        if not self.configured:
            raise RuntimeError("SMTP is not configured")
        recipients = [r for r in recipients if r]
        if not recipients:
            raise ValueError("No recipients")

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email
        message["To"] = recipients[0] if len(recipients) == 1 else self.from_email
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.attach(MIMEText(text_content, "plain", "utf-8"))
        if html_content:
            message.attach(MIMEText(html_content, "html", "utf-8"))

        server = self._create_smtp_connection()
        try:
            server.sendmail(self.from_email, recipients, message.as_string())
        finally:
            server.quit()
        self.logger.info(f"Email sent to {len(recipients)} recipient(s): {subject}")
