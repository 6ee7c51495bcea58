from pydantic import BaseModel, Field
from typing import Optional, List


class LineItem(BaseModel):
    label: str
    price: int
    kind: str  # "feature" | "service"

    class Config:
        frozen = True


class PricingResult(BaseModel):
    total: int = 0
    discount: int = 0
    features_total: int = Field(0, alias="featuresTotal")
    services_total: int = Field(0, alias="servicesTotal")
    custom_request_base: int = Field(0, alias="customRequestBase")
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")

    class Config:
        frozen = True
        populate_by_name = True


class EstimateRequest(BaseModel):
    """Submission payload. Only built from data that already passed validation."""
    app_url: str = Field(alias="appUrl")
    email: str
    platform: Optional[str] = None
    selected_features: List[str] = Field(default_factory=list, alias="selectedFeatures")
    selected_services: List[str] = Field(default_factory=list, alias="selectedServices")
    has_custom_request: bool = Field(False, alias="hasCustomRequest")
    custom_request_text: Optional[str] = Field(None, alias="customRequestText")
    additional_context: Optional[str] = Field(None, alias="additionalContext")
    timestamp: Optional[str] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_payload(cls, data: dict) -> "EstimateRequest":
        """
        Build from a raw payload that passed validate_estimate_request().
        Strings are trimmed, blank optionals become None, non-string list
        entries are dropped (they would price as 0 anyway).
        """
        def text(key):
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        def names(key):
            values = data.get(key)
            if not isinstance(values, list):
                return []
            return [v for v in values if isinstance(v, str)]

        return cls(
            app_url=data["appUrl"].strip(),
            email=data["email"].strip(),
            platform=text("platform"),
            selected_features=names("selectedFeatures"),
            selected_services=names("selectedServices"),
            has_custom_request=data.get("hasCustomRequest") is True,
            custom_request_text=text("customRequestText"),
            additional_context=text("additionalContext"),
            timestamp=text("timestamp"),
        )


class SubmitResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    errors: Optional[List[str]] = None
    details: Optional[str] = None
