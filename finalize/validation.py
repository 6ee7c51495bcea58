"""
Estimate request validation.

Every rule runs and violations are collected rather than failing fast, so the user
sees everything that needs fixing in one pass. The same rules back the
submission handler and the form; only the wording differs.
"""

import re
from typing import List
from urllib.parse import urlparse

from pydantic import BaseModel, PrivateAttr

# Permissive syntactic check, not RFC 5322
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SUBMISSION_MESSAGES = {
    "url_required": "App URL is required",
    "url_invalid": "App URL must be a valid URL",
    "email_required": "Email is required",
    "email_invalid": "Email must be a valid email address",
    "selection_required": "At least one service must be selected",
    "features_not_list": "Selected features must be an array",
    "services_not_list": "Selected services must be an array",
    "custom_text_required": "Custom request description is required when custom request is selected",
}

FORM_MESSAGES = {
    **SUBMISSION_MESSAGES,
    "url_required": "Please enter your app URL",
    "url_invalid": "Please enter a valid URL (e.g., https://example.com)",
    "email_required": "Please enter a valid email address",
    "email_invalid": "Please enter a valid email address",
    "selection_required": "Please select at least one service",
}


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = []
    _separator: str = PrivateAttr(default="; ")

    @property
    def message(self) -> str:
        """All errors joined for display."""
        return self._separator.join(self.errors)


def is_valid_url(value: str) -> bool:
    """Absolute URL with a scheme and a host."""
    try:
        parsed = urlparse(value)
        parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.hostname)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def _non_empty_string(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def collect_errors(data: dict, messages: dict = SUBMISSION_MESSAGES) -> List[str]:
    """Run every rule against a raw payload dict. Returns messages in rule order."""
    errors = []

    app_url = data.get("appUrl")
    if not _non_empty_string(app_url):
        errors.append(messages["url_required"])
    elif not is_valid_url(app_url.strip()):
        errors.append(messages["url_invalid"])

    email = data.get("email")
    if not _non_empty_string(email):
        errors.append(messages["email_required"])
    elif not is_valid_email(email.strip()):
        errors.append(messages["email_invalid"])

    features = data.get("selectedFeatures")
    services = data.get("selectedServices")
    has_custom = data.get("hasCustomRequest") is True

    has_features = isinstance(features, list) and len(features) > 0
    has_services = isinstance(services, list) and len(services) > 0
    if not (has_features or has_services or has_custom):
        errors.append(messages["selection_required"])

    if features is not None and not isinstance(features, list):
        errors.append(messages["features_not_list"])
    if services is not None and not isinstance(services, list):
        errors.append(messages["services_not_list"])

    if has_custom and not _non_empty_string(data.get("customRequestText")):
        errors.append(messages["custom_text_required"])

    return errors


def validate_estimate_request(data: dict) -> ValidationResult:
    """Server-side validation of a submission payload."""
    errors = collect_errors(data, SUBMISSION_MESSAGES)
    return ValidationResult(valid=not errors, errors=errors)


def validate_form(data: dict) -> ValidationResult:
    """
    Form-side validation of the payload about to be sent.
    Same rules, user-facing wording, joined with ". " for the error banner.
    """
    errors = collect_errors(data, FORM_MESSAGES)
    result = ValidationResult(valid=not errors, errors=errors)
    result._separator = ". "
    return result
