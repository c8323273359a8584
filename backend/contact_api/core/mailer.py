import logging
import smtplib
import ssl
from contextlib import contextmanager
from dataclasses import dataclass
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol

from contact_api.core.settings import Settings
from contact_api.lib.rendering import RenderedMessage

log = logging.getLogger("uvicorn.error")

EAUTH = "EAUTH"
ECONNECTION = "ECONNECTION"
EUNKNOWN = "EUNKNOWN"


class TransportError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class MailTransport(Protocol):
    def verify(self) -> None: ...

    def send_mail(self, message: RenderedMessage) -> None: ...


def single_address(addr_spec: str, display_name: str = "") -> Address:
    """Parse exactly one mailbox; lists like "a@x.com, b@y.com" raise ValueError."""
    try:
        return Address(display_name=display_name, addr_spec=addr_spec)
    except HeaderParseError as exc:
        raise ValueError(f"invalid address {addr_spec!r}: {exc}") from exc


def build_email(message: RenderedMessage) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = single_address(message.from_address, message.from_display_name)
    msg["To"] = single_address(message.to_address)
    if message.reply_to_address:
        msg["Reply-To"] = single_address(message.reply_to_address)
    msg["Subject"] = message.subject_line
    msg.set_content(message.text_body)
    msg.add_alternative(message.html_body, subtype="html")
    return msg


class SmtpTransport:
    """
    Implicit-TLS SMTP relay (Gmail by default).

    Every call opens, authenticates and closes its own connection, so one
    instance can be shared by concurrent requests.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        timeout: float = 30.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP_SSL,
        ssl_context: Optional[ssl.SSLContext] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        # verifies the server certificate and hostname before the password is sent
        self.ssl_context = ssl_context or ssl.create_default_context()
        self._smtp_factory = smtp_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.gmail_user,
            password=settings.gmail_app_password,
            timeout=settings.smtp_timeout,
        )

    def _require_credentials(self) -> None:
        if not (self.username and self.password):
            raise TransportError(EAUTH, "GMAIL_USER / GMAIL_APP_PASSWORD are not configured")

    @contextmanager
    def _session(self) -> Iterator[smtplib.SMTP]:
        self._require_credentials()
        try:
            with self._smtp_factory(
                self.host, self.port, timeout=self.timeout, context=self.ssl_context
            ) as smtp:
                smtp.login(self.username, self.password)
                yield smtp
        except smtplib.SMTPAuthenticationError as exc:
            raise TransportError(EAUTH, _smtp_error_text(exc)) from exc
        except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected) as exc:
            raise TransportError(ECONNECTION, _smtp_error_text(exc)) from exc
        except smtplib.SMTPException as exc:
            raise TransportError(EUNKNOWN, _smtp_error_text(exc)) from exc
        except OSError as exc:
            # DNS failures, refused sockets, TLS handshakes, timeouts
            raise TransportError(ECONNECTION, str(exc) or exc.__class__.__name__) from exc

    def verify(self) -> None:
        with self._session() as smtp:
            smtp.noop()

    def send_mail(self, message: RenderedMessage) -> None:
        self._require_credentials()
        try:
            msg = build_email(message)
        except (ValueError, TypeError) as exc:
            raise TransportError(EUNKNOWN, f"message rejected before sending: {exc}") from exc
        with self._session() as smtp:
            smtp.send_message(msg)


def _smtp_error_text(exc: smtplib.SMTPException) -> str:
    smtp_error = getattr(exc, "smtp_error", None)
    if isinstance(smtp_error, bytes):
        smtp_error = smtp_error.decode("utf-8", "replace")
    smtp_code = getattr(exc, "smtp_code", None)
    if smtp_error:
        return f"{smtp_code} {smtp_error}" if smtp_code else smtp_error
    return str(exc) or exc.__class__.__name__


class FailureReason(str, Enum):
    AUTHENTICATION = "authentication"
    CONNECTION = "connection"
    UNKNOWN = "unknown"


_REASONS = {
    EAUTH: FailureReason.AUTHENTICATION,
    ECONNECTION: FailureReason.CONNECTION,
}


@dataclass(frozen=True)
class DispatchOutcome:
    sent: bool
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls) -> "DispatchOutcome":
        return cls(sent=True)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str) -> "DispatchOutcome":
        return cls(sent=False, reason=reason, detail=detail)


class MailDispatcher:
    def __init__(self, transport: MailTransport):
        self.transport = transport

    def _call(self, op: Callable[[], None], what: str) -> DispatchOutcome:
        try:
            op()
        except TransportError as exc:
            reason = _REASONS.get(exc.code, FailureReason.UNKNOWN)
            log.debug(f"[mailer] {what} failed code={exc.code}: {exc.message}")
            return DispatchOutcome.failed(reason, exc.message)
        except Exception as exc:
            # e.g. UnicodeEncodeError from smtplib on a non-ASCII app password
            log.exception(f"[mailer] {what} failed unexpectedly: {exc}")
            return DispatchOutcome.failed(FailureReason.UNKNOWN, str(exc) or exc.__class__.__name__)
        return DispatchOutcome.ok()

    def send(self, message: RenderedMessage) -> DispatchOutcome:
        return self._call(lambda: self.transport.send_mail(message), f"send to {message.to_address}")

    def verify(self) -> DispatchOutcome:
        return self._call(self.transport.verify, "verify")
