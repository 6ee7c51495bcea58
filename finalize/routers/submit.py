"""
Estimate submission endpoint.

POST /api/submit-request — validate, price authoritatively, write one Airtable record.

The client's own estimate is advisory: the total persisted here is always
recomputed from the submitted feature/service names.
"""

import json
import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..pricing_engine import calculate_pricing
from ..record_store import AirtableClient, RecordStoreError, build_record
from ..schemas import ErrorResponse, EstimateRequest, SubmitResponse
from ..validation import validate_estimate_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["estimates"])

SUBMIT_PATH = "/submit-request"
NON_POST_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE"]


def get_store_factory() -> Callable[[Settings], AirtableClient]:
    """FastAPI dependency. Builds the store client once configuration is known good."""
    return AirtableClient.from_settings


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    body = ErrorResponse(error=error, **extra).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@router.api_route(SUBMIT_PATH, methods=NON_POST_METHODS, include_in_schema=False)
def submit_request_method_not_allowed():
    return _error(405, "Method not allowed")


@router.post(SUBMIT_PATH)
async def submit_request(
    request: Request,
    settings: Settings = Depends(get_settings),
    store_factory: Callable[[Settings], AirtableClient] = Depends(get_store_factory),
):
    """
    Accept an estimate request from the form.

    400: malformed JSON or validation failure (all violations listed)
    500: missing Airtable configuration, Airtable write failure, anything else
    """
    try:
        data = json.loads(await request.body())
    except (ValueError, UnicodeDecodeError, RecursionError):
        return _error(400, "Invalid JSON in request body")

    if not isinstance(data, dict):
        return _error(400, "Validation failed", errors=["Request body must be a JSON object"])

    validation = validate_estimate_request(data)
    if not validation.valid:
        return _error(400, "Validation failed", errors=validation.errors)

    if not settings.store_configured:
        for name in ("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID"):
            if not getattr(settings, name):
                logger.error("%s is not set", name)
        return _error(500, "Server configuration error")

    try:
        estimate = EstimateRequest.from_payload(data)
        # Never trust a client-side total
        pricing = calculate_pricing(
            estimate.selected_features,
            estimate.selected_services,
            estimate.has_custom_request,
        )
        record = build_record(estimate, pricing)

        store = store_factory(settings)
        await run_in_threadpool(store.create, settings.AIRTABLE_TABLE_NAME, record)
    except RecordStoreError as e:
        logger.exception("Error saving estimate request to Airtable")
        if e.status_code:
            return _error(500, "Failed to save to database", details=str(e))
        return _error(500, "Internal server error")
    except Exception:
        logger.exception("Error processing estimate request")
        return _error(500, "Internal server error")

    logger.info("Estimate request saved for %s (total $%d)", estimate.email, pricing.total)
    return SubmitResponse(message="Estimate request submitted successfully").model_dump()
