import asyncio
import logging
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Optional

import aiosmtplib

from storefront.backend.config import SmtpConfig
from storefront.backend.errors import MailNotConfigured

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Outbound customer email over SMTP. Disabled when no SmtpConfig is given."""

    def __init__(self, config: Optional[SmtpConfig] = None):
        self.config = config

    @property
    def configured(self) -> bool:
        return self.config is not None

    def build_message(self, to: str, subject: str, text: Optional[str] = None,
                      html: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message['From'] = self.config.mail_from
        message['To'] = to
        message['Subject'] = subject
        message['Date'] = formatdate(localtime=True)
        message['Message-ID'] = make_msgid(domain=self.config.mail_from.split('@')[-1])
        message.set_content(text or '')
        if html:
            message.add_alternative(html, subtype='html')
        return message

    async def send_async(self, to: str, subject: str, text: Optional[str] = None,
                         html: Optional[str] = None) -> str:
        if not self.configured:
            raise MailNotConfigured("SMTP not configured")

        message = self.build_message(to, subject, text, html)
        await aiosmtplib.send(
            message,
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            use_tls=self.config.use_tls,
            timeout=self.config.timeout,
        )
        logger.info(f"Sent '{subject}' to {to}")
        return message['Message-ID']

    def send(self, to: str, subject: str, text: Optional[str] = None,
             html: Optional[str] = None) -> str:
        """Send one message and return its Message-ID. Raises on any failure."""
        return asyncio.run(self.send_async(to, subject, text, html))

    def notify_order_confirmation(self, email: Optional[str], order_id: int) -> Optional[str]:
        """Best effort: never raises, returns the delivery id or None"""
        if not self.configured or not email:
            return None

        try:
            return self.send(
                email,
                "Order confirmation",
                text=f"Your order has been received. Order ID: {order_id}",
            )
        except Exception as e:
            logger.debug(f"Order confirmation mail for {order_id} not sent: {e}")
            return None
