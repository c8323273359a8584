# contact_api/lib/rendering.py
import html
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from contact_api.lib.contact_form import NormalizedSubmission
from contact_api.lib.timestamps import human_timestamp

ACK_SUBJECT = "✨ Thank you for reaching out!"
_FONT = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"
_BRAND_GRADIENT = "linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%)"


@dataclass(frozen=True)
class RenderedMessage:
    from_display_name: str
    from_address: str
    to_address: str
    subject_line: str
    html_body: str
    text_body: str
    reply_to_address: Optional[str] = None


def _header_safe(value: str) -> str:
    # CR/LF are not allowed in header values
    return re.sub(r"[\r\n]+", " ", value).strip()


def notification_subject(submission: NormalizedSubmission) -> str:
    if submission.subject:
        return _header_safe(submission.subject)
    return _header_safe(f"📬 New Portfolio Contact from {submission.name}")


def _notification_html(submission: NormalizedSubmission, received: str) -> str:
    name = html.escape(submission.name)
    email = html.escape(submission.email)
    message = html.escape(submission.message)
    subject_row = ""
    if submission.subject:
        subject_row = (
            f'<p style="margin: 5px 0; font-size: 15px;"><strong>Subject:</strong> '
            f"{html.escape(submission.subject)}</p>"
        )

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>New Contact Form Submission</title>
</head>
<body style="font-family: {_FONT}; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: {_BRAND_GRADIENT}; padding: 30px 20px; border-radius: 12px 12px 0 0; text-align: center;">
        <h1 style="color: white; margin: 0; font-size: 24px; font-weight: 600;">🌟 New Portfolio Contact</h1>
        <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0; font-size: 16px;">Someone wants to work with you!</p>
    </div>
    <div style="background: #f8fafc; padding: 30px 20px; border-left: 1px solid #e2e8f0; border-right: 1px solid #e2e8f0;">
        <div style="background: white; padding: 20px; border-radius: 10px; border-left: 4px solid #6366f1; margin-bottom: 20px;">
            <h3 style="margin: 0 0 10px 0; color: #1e293b; font-size: 16px;">👤 Contact Information</h3>
            <p style="margin: 5px 0; font-size: 15px;"><strong>Name:</strong> {name}</p>
            <p style="margin: 5px 0; font-size: 15px;"><strong>Email:</strong> <a href="mailto:{email}" style="color: #6366f1; text-decoration: none;">{email}</a></p>
            {subject_row}
        </div>
        <div style="background: white; padding: 20px; border-radius: 10px; border-left: 4px solid #10b981;">
            <h3 style="margin: 0 0 15px 0; color: #1e293b; font-size: 16px;">💌 Message</h3>
            <div style="background: #f8fafc; padding: 15px; border-radius: 8px; border: 1px solid #e2e8f0;">
                <p style="margin: 0; white-space: pre-wrap; line-height: 1.6; font-size: 15px;">{message}</p>
            </div>
        </div>
    </div>
    <div style="background: #1e293b; padding: 25px 20px; border-radius: 0 0 12px 12px; text-align: center;">
        <p style="color: #94a3b8; margin: 0 0 10px 0; font-size: 14px;">📅 <strong>Received:</strong> {html.escape(received)}</p>
        <p style="color: #64748b; margin: 0; font-size: 13px;">🔄 Reply to this email to respond directly to {name}</p>
        <p style="color: #64748b; margin: 10px 0 0 0; font-size: 12px;">📧 Sent from your Portfolio Contact Form</p>
    </div>
</body>
</html>
"""


def _notification_text(submission: NormalizedSubmission, received: str) -> str:
    return (
        "New Contact Form Submission\n"
        "\n"
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n"
        f"Subject: {submission.subject or 'No subject'}\n"
        "\n"
        "Message:\n"
        f"{submission.message}\n"
        "\n"
        "---\n"
        f"Received: {received}\n"
        f"Reply to this email to respond directly to {submission.name}.\n"
    )


def render_notification(
    submission: NormalizedSubmission,
    now: datetime,
    sender_address: str,
    recipient_address: Optional[str] = None,
) -> RenderedMessage:
    """
    Build the message telling the site owner about a new submission.

    From is the owner's own account under the visitor's display name; Reply-To
    is the visitor's address.
    """
    received = human_timestamp(now)
    return RenderedMessage(
        from_display_name=_header_safe(submission.name),
        from_address=sender_address,
        to_address=recipient_address or sender_address,
        reply_to_address=submission.email,
        subject_line=notification_subject(submission),
        html_body=_notification_html(submission, received),
        text_body=_notification_text(submission, received),
    )


def render_acknowledgment(
    submission: NormalizedSubmission,
    sender_address: str,
    persona_name: str,
    persona_title: str,
) -> RenderedMessage:
    name = html.escape(submission.name)
    message = html.escape(submission.message)
    signature = html.escape(persona_name)
    title = html.escape(persona_title)

    html_body = f"""<div style="font-family: {_FONT}; max-width: 600px; margin: 0 auto; border-radius: 12px; overflow: hidden; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
    <div style="background: {_BRAND_GRADIENT}; padding: 30px 20px; text-align: center;">
        <h1 style="color: white; margin: 0; font-size: 24px;">Thank you for reaching out!</h1>
        <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">I'll get back to you soon ⚡</p>
    </div>
    <div style="padding: 30px 20px; background: white;">
        <p style="color: #374151; font-size: 16px; line-height: 1.6;">Hi {name},</p>
        <p style="color: #374151; font-size: 16px; line-height: 1.6;">Thank you for your message! I've received your inquiry and will get back to you within 24-48 hours.</p>
        <div style="background: #f8fafc; padding: 20px; border-radius: 10px; margin: 20px 0; border-left: 4px solid #6366f1;">
            <p style="margin: 0; color: #374151;"><strong>Your message:</strong></p>
            <p style="margin: 10px 0 0 0; color: #64748b; line-height: 1.6; white-space: pre-wrap;">"{message}"</p>
        </div>
        <p style="color: #374151; font-size: 16px; line-height: 1.6;">
            Best regards,<br>
            <strong>{signature}</strong><br>
            <span style="color: #6366f1;">{title}</span>
        </p>
    </div>
</div>
"""

    quoted = "\n".join(f"> {line}" if line else ">" for line in submission.message.splitlines())
    text_body = (
        f"Hi {submission.name},\n"
        "\n"
        "Thank you for your message! I've received your inquiry and will get back "
        "to you within 24-48 hours.\n"
        "\n"
        "Your message:\n"
        f"{quoted}\n"
        "\n"
        "Best regards,\n"
        f"{persona_name}\n"
        f"{persona_title}\n"
    )

    return RenderedMessage(
        from_display_name=_header_safe(persona_name),
        from_address=sender_address,
        to_address=submission.email,
        subject_line=ACK_SUBJECT,
        html_body=html_body,
        text_body=text_body,
    )
