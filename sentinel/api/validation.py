import re
from typing import Tuple

from fastapi import HTTPException

from sentinel.settings import settings

PHONE_RE = re.compile(r"^\+\d{10,15}$")
MAX_PHONE_CHARS = 16


def clean_phone(value: str) -> str:
    """
    Normalize user-entered phone text the way the submit form does:
    keep digits and '+', force a single leading '+', cap at 16 chars.
    """
    cleaned = re.sub(r"[^\d+]", "", value or "")
    if not cleaned:
        return ""
    cleaned = "+" + cleaned.replace("+", "")
    return cleaned[:MAX_PHONE_CHARS]


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_RE.match(value or ""))


def validate_submission(message: str, phone: str) -> Tuple[str, str]:
    """
    Form-layer checks run before any classifier sees the input.
    Returns (message, cleaned_phone); raises HTTPException(400) otherwise.
    """
    if not (message or "").strip():
        raise HTTPException(status_code=400, detail="Message content is required")
    if len(message) > settings.MAX_MESSAGE_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Message is too long (max {settings.MAX_MESSAGE_CHARS} characters)",
        )
    if not (phone or "").strip():
        raise HTTPException(status_code=400, detail="Sender phone number is required")
    cleaned = clean_phone(phone)
    if not is_valid_phone(cleaned):
        raise HTTPException(status_code=400, detail="Invalid phone number. Use + followed by 10-15 digits.")
    return message, cleaned


def validate_question(question: str) -> str:
    q = (question or "").strip()
    if not q:
        raise HTTPException(status_code=400, detail="Question is required")
    if len(q) > settings.MAX_QUESTION_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Question is too long (max {settings.MAX_QUESTION_CHARS} characters)",
        )
    return q
