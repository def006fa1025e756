"""Email notifications for one-time passwords and support replies.

Delivery is fire-and-forget: `dispatch` schedules the SMTP send on a worker
thread and returns immediately. A failed send is logged and never reaches the
caller, so the operation that triggered it succeeds regardless.
"""

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from html import escape
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailNotifier:
    """SMTP-backed email notifier."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        sender: str = "",
        sender_name: str = "",
        timeout: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.sender_name = sender_name
        self.timeout = timeout
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls) -> "EmailNotifier":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.MAIL_FROM,
            sender_name=settings.MAIL_FROM_NAME,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.sender)

    @property
    def pending(self) -> set[asyncio.Task]:
        """Deliveries that have been dispatched but not yet settled."""
        return set(self._pending)

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        """Deliver a message synchronously. Raises on SMTP failure."""
        if not self.configured:
            logger.warning("SMTP is not configured; skipping email to %s", to)
            return

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self.sender_name} <{self.sender}>" if self.sender_name else self.sender
        msg["To"] = to
        if text:
            msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        ctx = ssl.create_default_context()
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
            s.starttls(context=ctx)
            if self.user and self.password:
                s.login(self.user, self.password)
            s.send_message(msg)
        logger.info("Email sent", extra={"mail.to": to, "mail.subject": subject})

    def dispatch(self, to: str, subject: str, html: str) -> None:
        """Schedule delivery without waiting for it. Must be called from a running event loop."""
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._deliver(to, subject, html))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, to: str, subject: str, html: str) -> None:
        try:
            await asyncio.to_thread(self.send, to, subject, html)
        except Exception:
            logger.exception("Email sending failed", extra={"mail.to": to, "mail.subject": subject})

    def send_otp(self, to: str, otp: str) -> None:
        html = (
            f"<h3>Your OTP is <b>{escape(otp)}</b></h3>"
            f"<p>It will expire in {settings.OTP_EXPIRES_MINUTES} minutes.</p>"
        )
        self.dispatch(to, "Your OTP Code", html)

    def send_ticket_reply(self, to: str, ticket_id: str, reply: str) -> None:
        html = (
            f"<h3>We replied to your support ticket {escape(ticket_id)}</h3>"
            f"<p>{escape(reply)}</p>"
        )
        self.dispatch(to, f"Re: support ticket {ticket_id}", html)
