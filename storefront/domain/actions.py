"""
Admin action requests, one model per action. The body's `action` field
selects the model, so each handler receives exactly the fields it needs.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from storefront.domain.errors import InvalidInputError
from storefront.domain.statuses import ORDER_STATUSES


class _ActionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notes: Optional[str] = None


class AcceptAction(_ActionBase):
    action: Literal["accept"]


class RejectAction(_ActionBase):
    action: Literal["reject"]
    reason: str = Field(..., description="Shown to the customer in the rejection email")

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Rejection reason is required")
        return value


class ReadyToDispatchAction(_ActionBase):
    action: Literal["ready_to_dispatch"]


class UpdateStatusAction(_ActionBase):
    action: Literal["update_status"]
    new_status: str = Field(..., alias="newStatus")
    reason: Optional[str] = None

    @field_validator("new_status")
    @classmethod
    def known_status(cls, value: str) -> str:
        if value not in ORDER_STATUSES:
            raise ValueError(f"Unknown status: {value}")
        return value


OrderAction = Annotated[
    Union[AcceptAction, RejectAction, ReadyToDispatchAction, UpdateStatusAction],
    Field(discriminator="action"),
]


class BulkOrdersData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_status: Optional[str] = Field(None, alias="newStatus")


class BulkOrdersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["bulk_status_update", "export"]
    order_ids: list[int] = Field(..., alias="orderIds")
    data: BulkOrdersData = Field(default_factory=BulkOrdersData)


_action_adapter = TypeAdapter(OrderAction)


def _describe(error: dict, payload) -> str:
    kind = error.get("type")
    if kind == "union_tag_invalid":
        return f"Unknown action: {payload.get('action')}"
    if kind == "union_tag_not_found":
        return "action is required"
    if kind == "missing":
        return f"{error['loc'][-1]} is required"
    # validator messages arrive as "Value error, <message>"
    return error.get("msg", "Invalid request").removeprefix("Value error, ")


def parse_action(payload):
    """Validate a raw action body into the model for its `action` tag."""
    try:
        return _action_adapter.validate_python(payload)
    except ValidationError as e:
        raise InvalidInputError(_describe(e.errors()[0], payload if isinstance(payload, dict) else {}))
