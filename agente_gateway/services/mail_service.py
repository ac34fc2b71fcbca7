# agente_gateway/services/mail_service.py

import asyncio
import html
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Callable, Optional, Sequence, Tuple

from loguru import logger

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ProviderError, ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.mail import SendMailPayloadAPI

REQUIRED_FIELDS_MSG = "Faltan campos requeridos (from, to, subject, message)"


class MailService:
    """SMTP relay (Brevo/Sendinblue) que prueba los hosts en orden."""

    def __init__(self, settings: Settings, smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP):
        self.hosts: Sequence[str] = list(settings.SMTP_HOSTS)
        self.port = settings.SMTP_PORT
        self.timeout = settings.SMTP_TIMEOUT_SECONDS
        self.user = settings.BREVO_USER
        self.password = settings.BREVO_PASS
        self.smtp_factory = smtp_factory

    @staticmethod
    def build_message(payload: SendMailPayloadAPI) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = payload.from_address
        msg["To"] = payload.to
        msg["Subject"] = payload.subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(payload.message)
        msg.add_alternative(f"<p>{html.escape(payload.message)}</p>", subtype="html")
        return msg

    def _send_with_host(self, host: str, msg: EmailMessage) -> None:
        """Bloqueante; se ejecuta en un thread."""
        with self.smtp_factory(host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send(self, payload: SendMailPayloadAPI) -> Tuple[str, str]:
        """Envia el correo. Devuelve (message_id, host)."""
        log = logger.bind(service="MailService", trace_id=trace_id_var.get(), to=payload.to)
        if not all([payload.from_address, payload.to, payload.subject, payload.message]):
            raise ValidationError(REQUIRED_FIELDS_MSG)

        msg = self.build_message(payload)
        last_error: Optional[Exception] = None
        for host in self.hosts:
            log.info(f"Sending mail via {host}:{self.port}...")
            try:
                await asyncio.to_thread(self._send_with_host, host, msg)
            except (smtplib.SMTPException, OSError) as e:
                log.warning(f"SMTP host {host} failed: {e}")
                last_error = e
                continue
            log.success(f"Mail sent via {host}. Message-ID: {msg['Message-ID']}")
            return msg["Message-ID"], host

        log.error(f"All SMTP hosts failed. Last error: {last_error}")
        raise ProviderError(
            "No se pudo enviar el correo",
            provider="smtp",
            details={"details": str(last_error) if last_error else "Sin hosts SMTP configurados"},
        )
