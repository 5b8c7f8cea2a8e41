import smtplib
import logging
from email.message import EmailMessage
from telecare.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, html: str | None = None) -> bool:
    if settings.EMAIL_BACKEND == "console":
        logger.info(f"[EMAIL] to={to_email} subject={subject}\n{body}")
        return True

    smtp_host = settings.SMTP_HOST
    smtp_port = settings.SMTP_PORT
    smtp_user = settings.SMTP_USER
    smtp_pass = settings.SMTP_PASSWORD

    if not smtp_user or not smtp_pass:
        raise Exception("SMTP credentials not configured (SMTP_USER / SMTP_PASSWORD)")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{settings.SENDER_NAME} <{smtp_user}>"
    msg["To"] = to_email
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(smtp_host, smtp_port, timeout=10) as server:
            server.ehlo()
            if smtp_port == 587:
                server.starttls()
                server.ehlo()
            server.login(smtp_user, smtp_pass)
            server.send_message(msg)
        return True
    except Exception:
        logger.exception("Failed to send email")
        raise


def send_notification_email(to_email: str, recipient_name: str, title: str, message: str) -> bool:
    """Wrap an in-app notification into a plain email."""
    subject = f"{title} | {settings.APP_NAME}"
    body = (
        f"Hi {recipient_name},\n\n"
        f"{message}\n\n"
        f"Regards,\n{settings.SENDER_NAME}"
    )
    html = (
        f"<p>Hi {recipient_name},</p>"
        f"<p>{message}</p>"
        f"<br/><p>Regards,<br/>{settings.SENDER_NAME}</p>"
    )
    return send_email(to_email, subject, body, html)
