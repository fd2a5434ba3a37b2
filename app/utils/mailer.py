from __future__ import annotations

import os
from dataclasses import dataclass

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail


class MailerError(Exception):
    pass


@dataclass(slots=True)
class SendGridMailer:
    api_key: str
    from_email: str

    def send_invitation_email(self, *, to_email: str, signup_link: str) -> None:
        subject = "You have been invited to join the BHAP Consortium"
        text = (
            "You have been invited to join the BHAP Consortium, where house "
            f"rules are proposed and voted on.\n\nSign up here:\n{signup_link}\n"
        )
        html = f"""
        <p>You have been invited to join the BHAP Consortium, where house rules are proposed and voted on.</p>
        <p><a href="{signup_link}">Create your account</a></p>
        <p>If you were not expecting this, you can ignore this email.</p>
        """

        msg = Mail(
            from_email=self.from_email,
            to_emails=to_email,
            subject=subject,
            plain_text_content=text,
            html_content=html,
        )

        try:
            client = SendGridAPIClient(self.api_key)
            resp = client.send(msg)
        except Exception as e:
            raise MailerError("Failed to send email") from e
        if resp.status_code < 200 or resp.status_code >= 300:
            raise MailerError(f"SendGrid failed with status {resp.status_code}")


def build_sendgrid_mailer_from_env() -> SendGridMailer:
    api_key = os.getenv("SENDGRID_API_KEY", "").strip()
    from_email = os.getenv("SENDGRID_FROM_EMAIL", "").strip()
    if not api_key:
        raise RuntimeError("SENDGRID_API_KEY is not set")
    if not from_email:
        raise RuntimeError("SENDGRID_FROM_EMAIL is not set")
    return SendGridMailer(api_key=api_key, from_email=from_email)
