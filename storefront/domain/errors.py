"""
Workflow error taxonomy. Each error carries the HTTP status the admin API
answers with; the message is shown to the admin verbatim.
"""


class WorkflowError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(WorkflowError):
    status_code = 400


class OrderNotFoundError(WorkflowError):
    status_code = 404

    def __init__(self, order_id):
        super().__init__("Order not found")
        self.order_id = order_id


class InvalidTransitionError(WorkflowError):
    """The action is not legal from the order's current status."""
    status_code = 400

    def __init__(self, message: str, current_status: str):
        super().__init__(message)
        self.current_status = current_status


class ConcurrentModificationError(WorkflowError):
    """The conditional update found the order in a different status than the one validated."""
    status_code = 409

    def __init__(self, order_id, expected_status: str):
        super().__init__(
            f"Order {order_id} changed concurrently (expected status: {expected_status}). Refresh and retry."
        )
        self.order_id = order_id
        self.expected_status = expected_status


class DispatchInProgressError(WorkflowError):
    status_code = 409

    def __init__(self, order_id):
        super().__init__(f"Dispatch already in progress for order {order_id}")
        self.order_id = order_id


class ShipmentBookingError(WorkflowError):
    status_code = 502


class EmailDeliveryError(Exception):
    """Raised by email senders; the workflow records it and moves on."""

    def __init__(self, message: str, subject: str | None = None):
        super().__init__(message)
        self.subject = subject
