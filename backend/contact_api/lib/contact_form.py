from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

NAME_MIN, NAME_MAX = 2, 100
EMAIL_MAX = 200
MESSAGE_MIN, MESSAGE_MAX = 10, 2000


class ContactSubmission(BaseModel):
    """Raw contact form fields exactly as the browser sent them."""

    model_config = ConfigDict(extra="ignore", strict=True)

    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class NormalizedSubmission:
    name: str
    email: str
    subject: str
    message: str


def _trimmed_len(value: Optional[str]) -> int:
    return len(value.strip()) if value else 0


def validate_submission(submission: ContactSubmission) -> List[str]:
    """
    Check every field rule and collect all violations.

    An empty list means the submission can be sanitized and sent. The subject
    is free text and never checked.
    """
    errors: List[str] = []
    name, email, message = submission.name, submission.email, submission.message

    if _trimmed_len(name) < NAME_MIN:
        errors.append(f"Name must be at least {NAME_MIN} characters long")
    if not email or "@" not in email:
        errors.append("Valid email address is required")
    if _trimmed_len(message) < MESSAGE_MIN:
        errors.append(f"Message must be at least {MESSAGE_MIN} characters long")

    if _trimmed_len(name) > NAME_MAX:
        errors.append(f"Name too long (max {NAME_MAX} characters)")
    if _trimmed_len(email) > EMAIL_MAX:
        errors.append(f"Email too long (max {EMAIL_MAX} characters)")
    if _trimmed_len(message) > MESSAGE_MAX:
        errors.append(f"Message too long (max {MESSAGE_MAX} characters)")

    return errors


def sanitize_submission(submission: ContactSubmission) -> NormalizedSubmission:
    errors = validate_submission(submission)
    if errors:
        raise ValueError(f"cannot sanitize an invalid submission: {'; '.join(errors)}")

    return NormalizedSubmission(
        name=submission.name.strip(),
        email=submission.email.strip().lower(),
        subject=(submission.subject or "").strip(),
        message=submission.message.strip(),
    )
