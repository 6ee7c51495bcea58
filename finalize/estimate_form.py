"""
Estimate form model — the client side of an estimate request.

The form is a pure state machine: an immutable FormState snapshot plus a
finite set of user intents. reduce() maps (state, intent) to the next
state and recomputes the advisory estimate; rendering only reads state.

    idle ──(selection changed)──> recalculated
    idle/recalculated ──(submit, valid)──> submitting
    submitting ──(response ok)──> submitted      (terminal, no retry)
    submitting ──(response failed)──> idle       (error shown)

The advisory total never includes the custom-request base; the server
adds it when it prices the request authoritatively.
"""

import http.client
import json
import logging
import urllib.error
import urllib.request
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from pydantic import BaseModel

from . import catalog
from .pricing_engine import estimate_for_selection, format_total
from .schemas import PricingResult
from .validation import validate_form

logger = logging.getLogger(__name__)

IDLE = "idle"
RECALCULATED = "recalculated"
SUBMITTING = "submitting"
SUBMITTED = "submitted"

SUBMIT_PATH = "/api/submit-request"
SUBMIT_FAILED_MESSAGE = "Failed to submit request. Please try again or contact us directly."

EDITABLE_FIELDS = ("app_url", "email", "additional_context", "other_platform")


class FormState(BaseModel):
    selected_features: Tuple[str, ...] = ()
    selected_services: Tuple[str, ...] = ()
    has_custom_request: bool = False
    custom_request_text: str = ""
    app_url: str = ""
    platform: str = ""
    other_platform: str = ""
    email: str = ""
    additional_context: str = ""
    status: str = IDLE
    error: Optional[str] = None
    pricing: PricingResult = PricingResult()

    class Config:
        frozen = True

    @property
    def has_selections(self) -> bool:
        return bool(self.selected_features or self.selected_services or self.has_custom_request)

    @property
    def shows_discount_notice(self) -> bool:
        return len(self.selected_features) >= catalog.FEATURE_DISCOUNT_THRESHOLD

    @property
    def total_text(self) -> str:
        return format_total(self.pricing, self.has_custom_request)


# --- Intents ---

class SelectItem(BaseModel):
    kind: str  # "feature" | "service"
    item_id: str
    checked: bool


class ToggleCustomRequest(BaseModel):
    checked: bool


class EditCustomRequest(BaseModel):
    text: str


class ChangePlatform(BaseModel):
    platform: str


class EditField(BaseModel):
    field: str
    value: str


class Submit(BaseModel):
    pass


class SubmissionSucceeded(BaseModel):
    pass


class SubmissionFailed(BaseModel):
    message: str = SUBMIT_FAILED_MESSAGE


Intent = Union[
    SelectItem, ToggleCustomRequest, EditCustomRequest, ChangePlatform,
    EditField, Submit, SubmissionSucceeded, SubmissionFailed,
]


def _toggle(selection: Tuple[str, ...], item_id: str, checked: bool) -> Tuple[str, ...]:
    """Add or remove an id, keeping first-selected order and uniqueness."""
    if checked:
        return selection if item_id in selection else selection + (item_id,)
    return tuple(i for i in selection if i != item_id)


def _recalculate(state: FormState, **changes) -> FormState:
    updated = state.model_copy(update=changes)
    pricing = estimate_for_selection(
        updated.selected_features, updated.selected_services, updated.has_custom_request,
    )
    return updated.model_copy(update={"pricing": pricing, "status": RECALCULATED})


def reduce(state: FormState, intent: Intent) -> FormState:
    """Pure state transition. Submitted forms ignore every further intent."""
    if state.status == SUBMITTED:
        return state
    # The form is locked while a request is in flight
    if state.status == SUBMITTING and not isinstance(intent, (SubmissionSucceeded, SubmissionFailed)):
        return state

    if isinstance(intent, SelectItem):
        if catalog.get_item(intent.kind, intent.item_id) is None:
            return state
        key = "selected_features" if intent.kind == "feature" else "selected_services"
        selection = _toggle(getattr(state, key), intent.item_id, intent.checked)
        return _recalculate(state, **{key: selection})

    if isinstance(intent, ToggleCustomRequest):
        changes = {"has_custom_request": intent.checked}
        if not intent.checked:
            changes["custom_request_text"] = ""
        return _recalculate(state, **changes)

    if isinstance(intent, EditCustomRequest):
        return state.model_copy(update={"custom_request_text": intent.text})

    if isinstance(intent, ChangePlatform):
        changes = {"platform": intent.platform}
        if intent.platform != catalog.OTHER_PLATFORM:
            changes["other_platform"] = ""
        return state.model_copy(update=changes)

    if isinstance(intent, EditField):
        if intent.field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown form field: {intent.field}. Editable: {list(EDITABLE_FIELDS)}")
        # Typing into a field dismisses the error banner
        return state.model_copy(update={intent.field: intent.value, "error": None})

    if isinstance(intent, Submit):
        validation = validate_form(build_payload(state))
        if not validation.valid:
            return state.model_copy(update={"error": validation.message})
        return state.model_copy(update={"status": SUBMITTING, "error": None})

    if isinstance(intent, SubmissionSucceeded):
        if state.status != SUBMITTING:
            return state
        return state.model_copy(update={"status": SUBMITTED, "error": None})

    if isinstance(intent, SubmissionFailed):
        if state.status != SUBMITTING:
            return state
        return state.model_copy(update={"status": IDLE, "error": intent.message})

    raise TypeError(f"Unsupported intent: {type(intent).__name__}")


def build_payload(state: FormState, now: Optional[datetime] = None) -> dict:
    """The JSON body POSTed to /api/submit-request. Items are sent by display name."""
    if state.platform == catalog.OTHER_PLATFORM:
        platform = state.other_platform.strip()
    else:
        platform = catalog.platform_name(state.platform)

    now = now or datetime.now(timezone.utc)
    return {
        "appUrl": state.app_url.strip(),
        "platform": platform,
        "selectedFeatures": [catalog.display_name("feature", i) for i in state.selected_features],
        "selectedServices": [catalog.display_name("service", i) for i in state.selected_services],
        "hasCustomRequest": state.has_custom_request,
        "customRequestText": state.custom_request_text,
        "email": state.email.strip(),
        "additionalContext": state.additional_context.strip(),
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


def send_request(state: FormState, base_url: str, timeout: float = 30.0) -> FormState:
    """
    POST the payload once and fold the outcome back into the state.
    Network errors, non-2xx responses and unparseable bodies all fail the
    submission. There is no retry.
    """
    payload = json.dumps(build_payload(state)).encode("utf-8")
    req = urllib.request.Request(
        base_url.rstrip("/") + SUBMIT_PATH,
        data=payload,
        headers={"Content-Type": "application/json"},
        method="POST",
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            result = json.loads(response.read())
    except urllib.error.HTTPError as e:
        logger.error("Error submitting request: HTTP %s", e.code)
        return reduce(state, SubmissionFailed())
    except (OSError, http.client.HTTPException, ValueError) as e:
        # URLError, timeouts, resets and truncated bodies all land here
        logger.error("Error submitting request: %s", e)
        return reduce(state, SubmissionFailed())

    if not isinstance(result, dict) or not result.get("success"):
        logger.error("Error submitting request: %s", result)
        return reduce(state, SubmissionFailed())

    return reduce(state, SubmissionSucceeded())


def submit_form(state: FormState, base_url: str, timeout: float = 30.0) -> FormState:
    """Submit click: validate, then send if validation passed."""
    state = reduce(state, Submit())
    if state.status != SUBMITTING:
        return state
    return send_request(state, base_url, timeout=timeout)
