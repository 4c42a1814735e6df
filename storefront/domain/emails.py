# --- Customer email catalogue ---

ORDER_ACCEPTED = "order_accepted"
ORDER_REJECTED = "order_rejected"
READY_TO_DISPATCH = "ready_to_dispatch"

SUBJECTS = {
    ORDER_ACCEPTED: "✓ Order Accepted! #{order_number} - AKUSHO",
    ORDER_REJECTED: "Order #{order_number} Could Not Be Processed - AKUSHO",
    READY_TO_DISPATCH: "📦 Your Order #{order_number} is Ready for Pickup! - AKUSHO",
}

REFUND_NOTE = "Your payment will be refunded within 5-7 business days to your original payment method."


def subject_for(email_type: str, order_number: str) -> str:
    return SUBJECTS[email_type].format(order_number=order_number)
