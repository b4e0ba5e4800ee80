"""Typed metadata payloads for validation requests.

Each request type carries its own payload shape. The JSON stored in
``validation_requests.metadata`` is decoded exactly once, at the model boundary,
into one of the payload classes below; nothing downstream touches raw JSON.

    BUDGET_INCREASE  -> {"newBudget": number}
    STATUS_CHANGE    -> {"newStatus": ProjectStatus}
    PROJECT_APPROVAL -> (no metadata)
    UNBLOCK_REQUEST  -> (no metadata)
"""
import json
import logging
import math
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tracker.models.project import BUDGET_LIMIT, ProjectStatus
from tracker.models.validation import RequestType

logger = logging.getLogger(__name__)


class EmptyPayload(BaseModel):
    """Payload for request types that carry no metadata."""
    model_config = ConfigDict(extra="ignore")


class BudgetIncreasePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # int stays int so that whole amounts round-trip unchanged
    new_budget: Union[int, float] = Field(alias="newBudget")

    @field_validator("new_budget", mode="before")
    @classmethod
    def validate_new_budget(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("newBudget must be a number")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("newBudget must be a finite number")
        if v < 0:
            raise ValueError("newBudget cannot be negative")
        if v >= BUDGET_LIMIT:
            raise ValueError(f"newBudget must be below {BUDGET_LIMIT:,}")
        return v


class StatusChangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    new_status: ProjectStatus = Field(alias="newStatus")


RequestPayload = Union[EmptyPayload, BudgetIncreasePayload, StatusChangePayload]

PAYLOAD_TYPES: Dict[RequestType, Type[BaseModel]] = {
    RequestType.PROJECT_APPROVAL: EmptyPayload,
    RequestType.BUDGET_INCREASE: BudgetIncreasePayload,
    RequestType.STATUS_CHANGE: StatusChangePayload,
    RequestType.UNBLOCK_REQUEST: EmptyPayload,
}


class PayloadError(ValueError):
    """Raised when submitted metadata does not match the request type."""


def parse_payload(request_type: RequestType, metadata: Optional[Dict[str, Any]]) -> RequestPayload:
    """Validate client-supplied metadata for a new request.

    Types without a payload ignore whatever metadata was sent.
    """
    payload_cls = PAYLOAD_TYPES[RequestType(request_type)]
    if payload_cls is EmptyPayload:
        return EmptyPayload()
    if not isinstance(metadata, dict):
        raise PayloadError(f"metadata is required for {RequestType(request_type).value} requests")
    try:
        return payload_cls.model_validate(metadata)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise PayloadError(f"Invalid metadata for {RequestType(request_type).value}: {messages}") from exc


def encode_payload(payload: RequestPayload) -> Optional[str]:
    """Serialize a payload for storage. Empty payloads are stored as NULL."""
    if isinstance(payload, EmptyPayload):
        return None
    return json.dumps(payload.model_dump(by_alias=True, mode="json"))


def decode_payload(request_type: str, raw: Optional[str]) -> RequestPayload:
    """Decode stored metadata into the payload for ``request_type``.

    Stored metadata that no longer parses decodes to EmptyPayload, which the
    workflow treats as "no metadata present".
    """
    payload_cls = PAYLOAD_TYPES[RequestType(request_type)]
    if payload_cls is EmptyPayload or not raw:
        return EmptyPayload()
    try:
        return payload_cls.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        logger.warning("Unreadable %s metadata: %r", request_type, raw)
        return EmptyPayload()


def payload_to_metadata(payload: RequestPayload) -> Optional[Dict[str, Any]]:
    """Wire representation of a payload (camelCase keys), or None."""
    if isinstance(payload, EmptyPayload):
        return None
    return payload.model_dump(by_alias=True, mode="json")
