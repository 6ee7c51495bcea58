"""
Estimate form model tests — intents, reducer, payload, submission transport.

Tests:
1-5.   Selection intents and the advisory estimate
6-8.   Custom request, platform, field edits
9-12.  Submit validation and the submission state machine
13-16. Payload building and send_request()
"""

import http.client
import json
import urllib.error
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from finalize.estimate_form import (
    IDLE,
    RECALCULATED,
    SUBMITTED,
    SUBMITTING,
    SUBMIT_FAILED_MESSAGE,
    ChangePlatform,
    EditCustomRequest,
    EditField,
    FormState,
    SelectItem,
    Submit,
    SubmissionFailed,
    SubmissionSucceeded,
    ToggleCustomRequest,
    build_payload,
    reduce,
    send_request,
    submit_form,
)


def _apply(state, *intents):
    for intent in intents:
        state = reduce(state, intent)
    return state


def _ready_state():
    """A form that passes validation."""
    return _apply(
        FormState(),
        SelectItem(kind="feature", item_id="authentication", checked=True),
        SelectItem(kind="service", item_id="security", checked=True),
        EditField(field="app_url", value=" https://myapp.example.com "),
        EditField(field="email", value="founder@example.com "),
        ChangePlatform(platform="lovable"),
    )


def _mock_response(body):
    response = MagicMock()
    response.read.return_value = json.dumps(body).encode("utf-8")
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


# ============================================================
# 1-5. Selection
# ============================================================

def test_initial_state_is_idle_and_empty():
    state = FormState()
    assert state.status == IDLE
    assert state.pricing.total == 0
    assert state.has_selections is False


def test_selecting_items_recalculates():
    state = _apply(
        FormState(),
        SelectItem(kind="feature", item_id="authentication", checked=True),
        SelectItem(kind="feature", item_id="payments", checked=True),
    )
    assert state.status == RECALCULATED
    assert state.selected_features == ("authentication", "payments")
    assert state.pricing.total == 200
    assert state.total_text == "$200"


def test_three_features_show_discount():
    state = _apply(FormState(), *[
        SelectItem(kind="feature", item_id=i, checked=True)
        for i in ("authentication", "payments", "saas")
    ])
    assert state.shows_discount_notice is True
    assert state.pricing.discount == 30
    assert state.pricing.total == 270


def test_selection_is_unique_and_order_preserving():
    state = _apply(
        FormState(),
        SelectItem(kind="service", item_id="uiux", checked=True),
        SelectItem(kind="service", item_id="security", checked=True),
        SelectItem(kind="service", item_id="uiux", checked=True),
        SelectItem(kind="service", item_id="deployment", checked=True),
        SelectItem(kind="service", item_id="security", checked=False),
    )
    assert state.selected_services == ("uiux", "deployment")
    assert state.pricing.total == 250


def test_unknown_item_ignored_and_state_unchanged():
    state = FormState()
    assert reduce(state, SelectItem(kind="feature", item_id="blockchain", checked=True)) is state


def test_reduce_does_not_mutate_previous_state():
    before = FormState()
    after = reduce(before, SelectItem(kind="feature", item_id="payments", checked=True))
    assert before.selected_features == ()
    assert after.selected_features == ("payments",)


# ============================================================
# 6-8. Custom request, platform, fields
# ============================================================

def test_custom_request_shows_plus_without_base_price():
    state = _apply(
        FormState(),
        SelectItem(kind="service", item_id="security", checked=True),
        ToggleCustomRequest(checked=True),
        EditCustomRequest(text="Admin dashboard"),
    )
    assert state.pricing.total == 150
    assert state.total_text == "$150+"
    assert state.custom_request_text == "Admin dashboard"


def test_unchecking_custom_request_clears_text():
    state = _apply(
        FormState(),
        ToggleCustomRequest(checked=True),
        EditCustomRequest(text="Admin dashboard"),
        ToggleCustomRequest(checked=False),
    )
    assert state.has_custom_request is False
    assert state.custom_request_text == ""


def test_leaving_other_platform_clears_free_text():
    state = _apply(
        FormState(),
        ChangePlatform(platform="other"),
        EditField(field="other_platform", value="v0"),
    )
    assert state.other_platform == "v0"
    state = reduce(state, ChangePlatform(platform="cursor"))
    assert state.other_platform == ""


def test_editing_a_field_dismisses_error():
    state = reduce(FormState(), Submit())
    assert state.error
    state = reduce(state, EditField(field="email", value="a"))
    assert state.error is None


def test_unknown_field_rejected():
    with pytest.raises(ValueError):
        reduce(FormState(), EditField(field="status", value=SUBMITTED))


# ============================================================
# 9-12. Submission state machine
# ============================================================

def test_submit_with_errors_stays_put():
    state = reduce(FormState(), Submit())
    assert state.status == IDLE
    assert state.error == (
        "Please enter your app URL. Please enter a valid email address. "
        "Please select at least one service"
    )


def test_submit_valid_form_moves_to_submitting():
    state = reduce(_ready_state(), Submit())
    assert state.status == SUBMITTING
    assert state.error is None


def test_form_is_locked_while_submitting():
    state = reduce(_ready_state(), Submit())
    assert reduce(state, SelectItem(kind="feature", item_id="payments", checked=True)) is state
    assert reduce(state, Submit()) is state


def test_success_is_terminal():
    state = _apply(_ready_state(), Submit(), SubmissionSucceeded())
    assert state.status == SUBMITTED
    assert reduce(state, SelectItem(kind="feature", item_id="payments", checked=True)) is state
    assert reduce(state, Submit()) is state


def test_failure_returns_to_idle_with_message():
    state = _apply(_ready_state(), Submit(), SubmissionFailed())
    assert state.status == IDLE
    assert state.error == SUBMIT_FAILED_MESSAGE
    # User can try again
    assert reduce(state, Submit()).status == SUBMITTING


def test_outcomes_ignored_outside_submitting():
    state = _ready_state()
    assert reduce(state, SubmissionSucceeded()) is state
    assert reduce(state, SubmissionFailed()) is state


# ============================================================
# 13-16. Payload and transport
# ============================================================

def test_build_payload():
    state = _apply(_ready_state(), ToggleCustomRequest(checked=True), EditCustomRequest(text="SSO"))
    now = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
    assert build_payload(state, now=now) == {
        "appUrl": "https://myapp.example.com",
        "platform": "Lovable",
        "selectedFeatures": ["Authentication"],
        "selectedServices": ["Security Audit & Fixes"],
        "hasCustomRequest": True,
        "customRequestText": "SSO",
        "email": "founder@example.com",
        "additionalContext": "",
        "timestamp": "2026-10-18T12:00:00.000Z",
    }


def test_build_payload_other_platform_sends_free_text():
    state = _apply(
        _ready_state(),
        ChangePlatform(platform="other"),
        EditField(field="other_platform", value="  v0 "),
    )
    assert build_payload(state)["platform"] == "v0"


def test_submit_form_success():
    with patch("finalize.estimate_form.urllib.request.urlopen",
               return_value=_mock_response({"success": True, "message": "ok"})) as urlopen:
        state = submit_form(_ready_state(), "https://finalize.example.com/")

    assert state.status == SUBMITTED
    req = urlopen.call_args[0][0]
    assert req.full_url == "https://finalize.example.com/api/submit-request"
    assert json.loads(req.data)["selectedServices"] == ["Security Audit & Fixes"]


def test_submit_form_invalid_never_sends():
    with patch("finalize.estimate_form.urllib.request.urlopen") as urlopen:
        state = submit_form(FormState(), "https://finalize.example.com")
    urlopen.assert_not_called()
    assert state.status == IDLE


@pytest.mark.parametrize("side_effect", [
    urllib.error.URLError("connection refused"),
    urllib.error.HTTPError("https://finalize.example.com/api/submit-request", 500, "Error", {}, None),
    TimeoutError("timed out"),
    ConnectionResetError("connection reset by peer"),
    http.client.RemoteDisconnected("Remote end closed connection without response"),
    http.client.IncompleteRead(b"{\"succ", 40),
])
def test_send_request_transport_failure(side_effect):
    submitting = reduce(_ready_state(), Submit())
    with patch("finalize.estimate_form.urllib.request.urlopen", side_effect=side_effect):
        state = send_request(submitting, "https://finalize.example.com")
    assert state.status == IDLE
    assert state.error == SUBMIT_FAILED_MESSAGE


def test_send_request_unsuccessful_body():
    submitting = reduce(_ready_state(), Submit())
    with patch("finalize.estimate_form.urllib.request.urlopen",
               return_value=_mock_response({"success": False, "error": "Validation failed"})):
        state = send_request(submitting, "https://finalize.example.com")
    assert state.status == IDLE
