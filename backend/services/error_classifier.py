"""Turns a raised failure into the single line of text shown to the user.

The remote service reports errors as JSON embedded in the exception text, so
the classifier sniffs for a brace-delimited object and reads its ``error``
section. Messages that merely contain braces can be misclassified.
"""
import json
import re
from typing import Optional

DEFAULT_ERROR_MESSAGE = "An error occurred during video generation. Please try again."
QUOTA_EXCEEDED_MESSAGE = (
    "API Quota Exceeded: Your request could not be completed because the usage limit has been reached. "
    "Please check your Google AI project's quota and billing status for more information."
)

_JSON_OBJECT = re.compile(r"{.*}", re.DOTALL)
_REDACTED = "[REDACTED]"


def redact_secret(text: str, secret: Optional[str]) -> str:
    if not secret or not text:
        return text
    return text.replace(secret, _REDACTED)


def classify_error(message: Optional[str], secret: Optional[str] = None) -> str:
    text = redact_secret(message or "", secret)
    if not text:
        return DEFAULT_ERROR_MESSAGE

    match = _JSON_OBJECT.search(text)
    if not match:
        return f"An error occurred during video generation: {text}"

    try:
        details = json.loads(match.group(0))
    except ValueError:
        return f"An error occurred during video generation: {text}"

    api_error = details.get("error") or details
    if not isinstance(api_error, dict):
        return f"An unexpected error occurred: {text}"

    if api_error.get("status") == "RESOURCE_EXHAUSTED":
        return QUOTA_EXCEEDED_MESSAGE
    if api_error.get("message"):
        return f"Video generation failed: {api_error['message']}"
    return f"An unexpected error occurred: {text}"
