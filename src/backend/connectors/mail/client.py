from __future__ import annotations

import mimetypes
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import Iterable

from .config import SmtpConfig


PLAIN_TEXT_BODY = "This is the plain text version of the email."


class MailDeliveryError(RuntimeError):
    pass


def build_message(
    *,
    from_address: str,
    to_addresses: Iterable[str],
    subject: str,
    html_body: str,
    attachments: Iterable[Path] = (),
    inline_image: Path | None = None,
) -> EmailMessage:
    """
    Compose a multipart message: plain + HTML alternatives, an optional inline
    header image (referenced from the HTML as `cid:header_image`) and file
    attachments.
    """
    msg = EmailMessage()
    msg["From"] = from_address
    msg["To"] = ", ".join(to_addresses)
    msg["Subject"] = subject
    msg.set_content(PLAIN_TEXT_BODY)

    if inline_image is not None:
        cid = make_msgid(domain="guest-checkin")
        html_body = html_body.replace("cid:header_image", f"cid:{cid[1:-1]}")
        msg.add_alternative(html_body, subtype="html")
        maintype, subtype = _guess_type(inline_image, default="image/jpeg")
        msg.get_payload()[1].add_related(
            inline_image.read_bytes(),
            maintype=maintype,
            subtype=subtype,
            cid=cid,
            filename=inline_image.name,
        )
    else:
        msg.add_alternative(html_body, subtype="html")

    for path in attachments:
        msg.add_attachment(
            path.read_bytes(),
            maintype="application",
            subtype="octet-stream",
            filename=path.name,
        )
    return msg


def send_message(config: SmtpConfig, message: EmailMessage) -> None:
    try:
        with smtplib.SMTP(config.host, config.port, timeout=config.timeout_seconds) as smtp:
            if config.starttls:
                smtp.starttls()
            if config.username:
                smtp.login(config.username, config.password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailDeliveryError(f"Sending mail via {config.host}:{config.port} failed: {exc}") from exc


def _guess_type(path: Path, *, default: str) -> tuple[str, str]:
    guessed, _ = mimetypes.guess_type(path.name)
    maintype, subtype = (guessed or default).split("/", 1)
    return maintype, subtype
