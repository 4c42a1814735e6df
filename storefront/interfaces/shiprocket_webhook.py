import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Header, Request

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.post("/shiprocket")
async def shiprocket_webhook(request: Request, x_api_key: Optional[str] = Header(None)):
    """
    Shiprocket tracking webhook. Always answers 200 so the courier does not
    retry; problems are logged instead.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Shiprocket webhook with a non-JSON body")
        return {"received": True, "error": "Invalid payload"}

    logger.info(f"📨 Shiprocket webhook received: awb={payload.get('awb') if isinstance(payload, dict) else None}")

    try:
        if not isinstance(payload, dict):
            raise ValueError("payload must be a JSON object")
        return request.app.state.tracking.ingest(payload, api_key=x_api_key)
    except Exception as e:
        logger.error(f"❌ Webhook processing error: {e}", exc_info=True)
        return {"received": True, "error": "Processing error"}


@router.get("/shiprocket")
def shiprocket_webhook_status():
    return {
        "status": "ok",
        "message": "Shiprocket webhook endpoint is active",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
