"""Delivery of rendered reports to a file or by e-mail."""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formatdate
from pathlib import Path
from typing import Union

from gitmon.core.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileDestination:
    path: Path


@dataclass(frozen=True)
class EmailDestination:
    from_addr: str
    to: str
    token: str
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    subject: str = "Git Commit Notification"


Destination = Union[FileDestination, EmailDestination]


def build_message(html_body: str, destination: EmailDestination) -> MIMEText:
    """Create the single HTML message sent for a run."""
    msg = MIMEText(html_body, "html", "utf-8")
    msg["Subject"] = destination.subject
    msg["From"] = destination.from_addr
    msg["To"] = destination.to
    msg["Date"] = formatdate(localtime=True)
    return msg


def write_report(html_body: str, destination: FileDestination) -> None:
    path = Path(destination.path)
    try:
        path.write_text(html_body, encoding="utf-8")
    except OSError as e:
        raise DeliveryError(f"Failed to write report to {path}: {e}") from e
    logger.info("Report written to %s", path)


def send_email(html_body: str, destination: EmailDestination) -> None:
    """Send the report through an authenticated SMTP relay (SSL)."""
    msg = build_message(html_body, destination)
    try:
        with smtplib.SMTP_SSL(destination.smtp_host, destination.smtp_port) as server:
            server.login(destination.from_addr, destination.token)
            server.sendmail(destination.from_addr, [destination.to], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        raise DeliveryError(f"Failed to send email to {destination.to}: {e}") from e
    logger.info("Email sent successfully to %s", destination.to)


def deliver(html_body: str, destination: Destination) -> None:
    """Deliver a report; raises ``DeliveryError`` on failure."""
    if isinstance(destination, FileDestination):
        write_report(html_body, destination)
    elif isinstance(destination, EmailDestination):
        send_email(html_body, destination)
    else:
        raise TypeError(f"Unsupported destination: {destination!r}")
