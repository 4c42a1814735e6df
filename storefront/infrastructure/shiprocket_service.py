import logging
import re
from datetime import date

import requests

from storefront.core.config import settings
from storefront.domain.shipping import BookingResult, ShipmentRequest
from storefront.infrastructure.state_manager import StateManager
from storefront.interfaces.IShippingService import IShippingService

logger = logging.getLogger(__name__)

TOKEN_KEY = "shiprocket:token"
TOKEN_TTL_SECONDS = 9 * 24 * 60 * 60  # tokens live 10 days; refresh a day early


class ShiprocketError(Exception):
    pass


class ShiprocketService(IShippingService):
    """
    A service class for the Shiprocket courier aggregator API.
    """

    def __init__(self, state: StateManager, base_url: str = settings.SHIPROCKET_BASE_URL,
                 email: str | None = settings.SHIPROCKET_EMAIL,
                 password: str | None = settings.SHIPROCKET_PASSWORD,
                 timeout: float = settings.SHIPROCKET_TIMEOUT_SECONDS):
        self.state = state
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout

        if not all([self.email, self.password]):
            logger.warning("⚠️ ShiprocketService: credentials missing. Shipment booking will fail.")

    # --- Auth ---

    def get_auth_token(self) -> str:
        cached = self.state.get_value(TOKEN_KEY)
        if cached:
            return cached

        if not all([self.email, self.password]):
            raise ShiprocketError("Shiprocket credentials are not configured")

        response = requests.post(
            f"{self.base_url}/auth/login",
            json={"email": self.email, "password": self.password},
            timeout=self.timeout,
        )
        if not response.ok:
            logger.error(f"Shiprocket auth error: {response.status_code} - {response.text}")
            raise ShiprocketError("Failed to authenticate with Shiprocket")

        try:
            token = response.json().get("token")
        except (ValueError, AttributeError):
            token = None
        if not token:
            raise ShiprocketError("No token received from Shiprocket")

        self.state.set_value(TOKEN_KEY, token, TOKEN_TTL_SECONDS)
        return token

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        response = self._send(method, endpoint, **kwargs)
        if response.status_code == 401:
            # Token revoked before its cache entry expired: log in again once
            logger.warning("Shiprocket rejected the cached token; re-authenticating")
            self.state.delete_value(TOKEN_KEY)
            response = self._send(method, endpoint, **kwargs)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            logger.error(f"Shiprocket API Error: {response.status_code} - {response.text}")
            message = data.get("message") if isinstance(data, dict) else None
            raise ShiprocketError(message or f"Shiprocket API error: {response.status_code}")
        return data if isinstance(data, dict) else {}

    def _send(self, method: str, endpoint: str, **kwargs):
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.get_auth_token()}",
        }
        return requests.request(method, f"{self.base_url}{endpoint}", headers=headers,
                                timeout=self.timeout, **kwargs)

    # --- Orders & courier ---

    def create_order(self, payload: dict) -> dict:
        return self._request("POST", "/orders/create/adhoc", json=payload)

    def assign_awb(self, shipment_id: int, courier_id: int | None = None) -> dict:
        """If courier_id is not provided, Shiprocket auto-selects the best courier."""
        body = {"shipment_id": shipment_id}
        if courier_id:
            body["courier_id"] = courier_id
        return self._request("POST", "/courier/assign/awb", json=body)

    def schedule_pickup(self, shipment_ids: list) -> dict:
        return self._request("POST", "/courier/generate/pickup", json={"shipment_id": shipment_ids})

    def generate_label(self, shipment_ids: list) -> dict:
        return self._request("POST", "/courier/generate/label", json={"shipment_id": shipment_ids})

    def track_by_awb(self, awb_code: str) -> dict:
        return self._request("GET", f"/courier/track/awb/{awb_code}")

    def build_order_payload(self, request: ShipmentRequest) -> dict:
        address_parts = [part.strip() for part in request.shipping_address.split(",")]
        name_parts = request.customer_name.strip().split(" ")

        return {
            "order_id": request.order_number,
            "order_date": date.today().isoformat(),
            "pickup_location": settings.SHIPROCKET_PICKUP_LOCATION,
            "billing_customer_name": name_parts[0],
            "billing_last_name": " ".join(name_parts[1:]),
            "billing_address": address_parts[0] or request.shipping_address,
            "billing_address_2": ", ".join(address_parts[1:]),
            "billing_city": request.shipping_city,
            "billing_pincode": request.shipping_pincode,
            "billing_state": request.shipping_state,
            "billing_country": "India",
            "billing_email": request.customer_email,
            "billing_phone": re.sub(r"\D", "", request.customer_phone)[-10:],
            "shipping_is_billing": True,
            "order_items": [
                {
                    "name": item.name,
                    "sku": item.sku,
                    "units": item.quantity,
                    "selling_price": item.price,
                }
                for item in request.items
            ],
            "payment_method": request.payment_method,
            "sub_total": request.subtotal,
            "length": settings.PACKAGE_LENGTH_CM,
            "breadth": settings.PACKAGE_BREADTH_CM,
            "height": settings.PACKAGE_HEIGHT_CM,
            "weight": settings.PACKAGE_WEIGHT_KG,
        }

    # --- Ready to dispatch ---

    def book_shipment(self, request: ShipmentRequest) -> BookingResult:
        """
        Create the Shiprocket order, assign an AWB, schedule pickup and
        generate the label. Tracking details are looked up best-effort.
        """
        logger.info(f"🚀 Starting RTD process for order {request.order_number}")
        try:
            created = self.create_order(self.build_order_payload(request))
            shipment_id = created.get("shipment_id")
            if not shipment_id:
                raise ShiprocketError(created.get("message") or "Shiprocket did not return a shipment id")
            logger.info(f"✅ Shiprocket order created: {created.get('order_id')}")

            awb_result = self.assign_awb(shipment_id)
            if awb_result.get("awb_assign_status") != 1:
                message = awb_result.get("message") or "Failed to assign AWB - courier may not be available"
                raise ShiprocketError(message)
            awb_data = (awb_result.get("response") or {}).get("data") or {}
            awb_code = awb_data.get("awb_code")
            if not awb_code:
                raise ShiprocketError("Shiprocket did not return an AWB code")
            courier_name = awb_data.get("courier_name")
            logger.info(f"✅ AWB assigned: {awb_code} ({courier_name})")

            self.schedule_pickup([shipment_id])
            logger.info("✅ Pickup scheduled")

            label = self.generate_label([shipment_id])
            label_url = label.get("label_url") or None
        except (ShiprocketError, requests.RequestException) as e:
            logger.error(f"❌ RTD process failed for order {request.order_number}: {e}")
            return BookingResult.failed(str(e) or "Failed to process RTD")

        tracking_url = None
        expected_delivery = None
        try:
            tracking = self.track_by_awb(awb_code).get("tracking_data") or {}
            tracking_url = tracking.get("track_url") or None
            expected_delivery = tracking.get("etd") or None
        except (ShiprocketError, requests.RequestException) as e:
            logger.info(f"Tracking URL not available yet for {awb_code}: {e}")

        logger.info(f"✅ RTD complete for order {request.order_number}")
        return BookingResult(
            success=True,
            shiprocket_order_id=created.get("order_id"),
            shipment_id=shipment_id,
            awb_code=awb_code,
            courier_name=courier_name,
            label_url=label_url,
            tracking_url=tracking_url,
            expected_delivery=expected_delivery,
        )
