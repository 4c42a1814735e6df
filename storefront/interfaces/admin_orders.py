from typing import Optional

from fastapi import APIRouter, Body, Query, Request

from storefront.domain.actions import BulkOrdersRequest, parse_action

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


@router.get("")
def list_orders(
    request: Request,
    status: Optional[str] = None,
    payment: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Dashboard listing with grouped status filters and stats."""
    queries = request.app.state.queries
    return queries.list_orders(status=status, payment=payment, search=search, limit=limit, offset=offset)


@router.post("")
def bulk_orders(request: Request, body: BulkOrdersRequest):
    if body.action == "export":
        return request.app.state.queries.export(body.order_ids)
    return request.app.state.workflow.bulk_update_status(body.order_ids, body.data.new_status)


@router.get("/{order_id}")
def get_order(request: Request, order_id: int):
    return request.app.state.queries.order_details(order_id)


@router.get("/{order_id}/actions")
def get_order_with_history(request: Request, order_id: int):
    return request.app.state.queries.order_details(order_id)


@router.post("/{order_id}/actions")
def run_order_action(request: Request, order_id: int, payload: dict = Body(...)):
    """
    Admin actions: accept, reject, ready_to_dispatch, update_status.
    Retrieves the workflow from app.state (Dependency Injection).
    """
    action = parse_action(payload)
    result = request.app.state.workflow.handle(order_id, action)
    return result.to_response()
