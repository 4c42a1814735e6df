"""
Order and payment status vocabulary shared by the workflow, the tracking
webhook and the admin listing.
"""

# --- Order statuses ---
PENDING = "pending"
PENDING_REVIEW = "pending_review"
CONFIRMED = "confirmed"
PROCESSING = "processing"
READY_TO_DISPATCH = "ready_to_dispatch"
SHIPPED = "shipped"
OUT_FOR_DELIVERY = "out_for_delivery"
DELIVERED = "delivered"
CANCELLED = "cancelled"
RTO_INITIATED = "rto_initiated"
RTO_DELIVERED = "rto_delivered"

ORDER_STATUSES = (
    PENDING,
    PENDING_REVIEW,
    CONFIRMED,
    PROCESSING,
    READY_TO_DISPATCH,
    SHIPPED,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
    RTO_INITIATED,
    RTO_DELIVERED,
)

# --- Payment statuses ---
PAYMENT_PAID = "paid"
PAYMENT_COD = "cod"
PAYMENT_PENDING = "pending"

PAYMENT_STATUSES = (PAYMENT_PAID, PAYMENT_COD, PAYMENT_PENDING)

# --- Admin action gates ---
ACCEPTABLE_STATUSES = frozenset({PENDING, PENDING_REVIEW})
ACCEPTABLE_PAYMENTS = frozenset({PAYMENT_PAID, PAYMENT_COD})
NON_REJECTABLE_STATUSES = frozenset({SHIPPED, DELIVERED, CANCELLED})
DISPATCHABLE_STATUSES = frozenset({CONFIRMED, PROCESSING})

# Dashboard filter groups: ?status=<group> expands to these statuses
STATUS_GROUPS = {
    "pending": (PENDING, PENDING_REVIEW),
    "processing": (CONFIRMED, PROCESSING, READY_TO_DISPATCH),
    "shipped": (SHIPPED, OUT_FOR_DELIVERY),
    "cancelled": (CANCELLED, RTO_INITIATED, RTO_DELIVERED),
}

# Courier updates only move an order forward along this ranking
STATUS_PRIORITY = {
    PENDING: 0,
    PENDING_REVIEW: 0,
    CONFIRMED: 1,
    PROCESSING: 2,
    READY_TO_DISPATCH: 3,
    SHIPPED: 4,
    OUT_FOR_DELIVERY: 5,
    DELIVERED: 6,
    RTO_INITIATED: 7,
    RTO_DELIVERED: 8,
    CANCELLED: 9,
}

STATUS_LABELS = {
    PENDING: "Pending Payment",
    PENDING_REVIEW: "Awaiting Review",
    CONFIRMED: "Order Confirmed",
    PROCESSING: "Processing",
    READY_TO_DISPATCH: "Ready to Dispatch",
    SHIPPED: "Shipped",
    "in_transit": "In Transit",
    OUT_FOR_DELIVERY: "Out for Delivery",
    DELIVERED: "Delivered",
    CANCELLED: "Cancelled",
    RTO_INITIATED: "Return Initiated",
    RTO_DELIVERED: "Returned to Seller",
    "undelivered": "Delivery Failed",
}


def status_label(status: str) -> str:
    """Human-readable label, falling back to title-casing the raw value."""
    return STATUS_LABELS.get(status) or status.replace("_", " ").title()


def is_forward_move(current: str, new: str) -> bool:
    return STATUS_PRIORITY.get(new, 0) > STATUS_PRIORITY.get(current, 0)
