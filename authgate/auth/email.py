"""Verification email delivery.

EmailNotifier renders the verification message with Jinja2 and hands SMTP
delivery to a small thread pool. Callers only enqueue: they never wait for
delivery and never see its outcome. A failed delivery is logged here and
goes no further.

When no SMTP host is configured (development), the message is logged
instead of sent.
"""

import logging
import smtplib
import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from jinja2 import Environment

from ..config import Settings

logger = logging.getLogger(__name__)


VERIFICATION_SUBJECT = "Verify your email address"

VERIFICATION_HTML = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ subject }}</title>
    <style>
        body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
        .button {
            display: inline-block;
            background: #007bff;
            color: white;
            padding: 12px 24px;
            border-radius: 4px;
            text-decoration: none;
        }
        .footer { margin-top: 40px; font-size: 12px; color: #666; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Welcome, {{ name }}!</h1>
        <p>Please confirm your email address to activate your account:</p>
        <p style="margin: 30px 0;">
            <a href="{{ verification_url }}" class="button">Verify Email</a>
        </p>
        <div class="footer">
            <p>{{ sender_name }}</p>
            <p>If the button doesn't work, copy and paste this URL: {{ verification_url }}</p>
        </div>
    </div>
</body>
</html>
"""

VERIFICATION_TEXT = """Welcome, {{ name }}!

Please confirm your email address to activate your account:

{{ verification_url }}

---
{{ sender_name }}
"""

_html_env = Environment(autoescape=True)
_text_env = Environment(autoescape=False)
_html_template = _html_env.from_string(VERIFICATION_HTML)
_text_template = _text_env.from_string(VERIFICATION_TEXT)


def redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailNotifier:
    """Fire-and-forget verification email sender."""

    def __init__(
        self,
        *,
        verification_base_url: str,
        smtp_host: str | None = None,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        smtp_use_tls: bool = True,
        from_email: str = "noreply@authgate.local",
        from_name: str = "AuthGate",
        max_workers: int = 2,
    ):
        self.verification_base_url = verification_base_url
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email
        self.from_name = from_name
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="email"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotifier":
        return cls(
            verification_base_url=settings.verification_base_url,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_use_tls=settings.smtp_use_tls,
            from_email=settings.mail_from,
            from_name=settings.mail_from_name,
            max_workers=settings.email_workers,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def build_verification_url(self, token: str) -> str:
        return f"{self.verification_base_url}?{urlencode({'token': token})}"

    def render_verification(self, name: str, token: str) -> tuple[str, str, str]:
        """Render (subject, html_body, text_body) for a verification email."""
        context = {
            "subject": VERIFICATION_SUBJECT,
            "name": name,
            "verification_url": self.build_verification_url(token),
            "sender_name": self.from_name,
        }
        return (
            VERIFICATION_SUBJECT,
            _html_template.render(**context),
            _text_template.render(**context),
        )

    def send_verification_email(self, to: str, name: str, token: str) -> Future:
        """Queue a verification email and return immediately.

        The returned future always resolves to True or False and never
        raises; callers are free to ignore it.
        """
        return self._executor.submit(self._deliver_verification, to, name, token)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with wait=True, finish queued deliveries first."""
        self._executor.shutdown(wait=wait)

    def _deliver_verification(self, to: str, name: str, token: str) -> bool:
        try:
            subject, html_body, text_body = self.render_verification(name, token)
            self._send(to, subject, html_body, text_body)
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.error(
                f"Verification email to {redact_email(to)} failed: "
                f"{type(e).__name__}: {e}"
            )
            return False
        except Exception:
            # Worker threads have no caller to report to
            logger.exception(f"Unexpected error sending verification email to {redact_email(to)}")
            return False
        return True

    def _send(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.is_configured:
            logger.info(
                f"SMTP not configured, email to {redact_email(to)} not sent. "
                f"Subject: {subject}\n{text_body}"
            )
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        context = ssl.create_default_context()
        if self.smtp_use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to], msg.as_string())
        else:
            with smtplib.SMTP_SSL(
                self.smtp_host, self.smtp_port, context=context, timeout=30
            ) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to], msg.as_string())

        logger.info(f"Verification email sent to {redact_email(to)}")
