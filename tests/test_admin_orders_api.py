import unittest

from storefront.domain.shipping import BookingResult
from tests.support import FakeShipping, Harness, client_for


class TestOrderActionsEndpoint(unittest.TestCase):
    def setUp(self):
        self.h = Harness()
        self.client = client_for(self.h)

    def test_accept(self):
        self.h.seed(42)

        resp = self.client.post("/api/admin/orders/42/actions", json={"action": "accept"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "message": "Order accepted successfully", "newStatus": "confirmed"})

    def test_reject_requires_reason(self):
        self.h.seed(1)

        resp = self.client.post("/api/admin/orders/1/actions", json={"action": "reject"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "reason is required"})

        resp = self.client.post("/api/admin/orders/1/actions", json={"action": "reject", "reason": " "})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Rejection reason is required"})

    def test_reject_shipped_order(self):
        self.h.seed(43, status="shipped")

        resp = self.client.post("/api/admin/orders/43/actions",
                                json={"action": "reject", "reason": "Customer request"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Cannot reject order with status: shipped"})

    def test_unknown_action(self):
        self.h.seed(1)
        resp = self.client.post("/api/admin/orders/1/actions", json={"action": "teleport"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Unknown action: teleport"})

    def test_missing_action(self):
        resp = self.client.post("/api/admin/orders/1/actions", json={"notes": "hi"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "action is required"})

    def test_update_status_with_unknown_status(self):
        self.h.seed(1)
        resp = self.client.post("/api/admin/orders/1/actions",
                                json={"action": "update_status", "newStatus": "lost"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Unknown status: lost"})

    def test_invalid_order_id(self):
        resp = self.client.post("/api/admin/orders/abc/actions", json={"action": "accept"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid order ID"})

    def test_order_not_found(self):
        resp = self.client.post("/api/admin/orders/999/actions", json={"action": "accept"})

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "Order not found"})

    def test_ready_to_dispatch_returns_shipping_block(self):
        self.h.seed(45, status="confirmed")

        resp = self.client.post("/api/admin/orders/45/actions", json={"action": "ready_to_dispatch"})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["newStatus"], "ready_to_dispatch")
        self.assertEqual(body["shipping"]["awbCode"], "AWB123")
        self.assertEqual(body["shipping"]["courierName"], "Delhivery Surface")

    def test_booking_failure_is_bad_gateway(self):
        h = Harness(shipping=FakeShipping(BookingResult.failed("Pincode not serviceable")))
        h.seed(44, status="confirmed")

        resp = client_for(h).post("/api/admin/orders/44/actions", json={"action": "ready_to_dispatch"})

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json(), {"error": "Pincode not serviceable"})

    def test_unexpected_error_is_500(self):
        self.h.seed(1)

        def explode(order_id, action):
            raise RuntimeError("db went away")

        self.h.workflow.handle = explode
        client = client_for(self.h, raise_server_exceptions=False)

        resp = client.post("/api/admin/orders/1/actions", json={"action": "accept"})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Failed to process action"})


class TestOrderDetailEndpoints(unittest.TestCase):
    def setUp(self):
        self.h = Harness()
        self.client = client_for(self.h)

    def test_detail_lists_history_and_emails_newest_first(self):
        self.h.seed(1)
        self.h.workflow.accept(1)
        self.h.workflow.update_status(1, "processing", reason="Packing")

        for path in ("/api/admin/orders/1", "/api/admin/orders/1/actions"):
            resp = self.client.get(path)
            self.assertEqual(resp.status_code, 200)
            body = resp.json()
            self.assertEqual(body["order"]["status"], "processing")
            self.assertEqual([row["new_status"] for row in body["history"]], ["processing", "confirmed"])
            self.assertEqual(len(body["emails"]), 1)
            self.assertEqual(body["emails"][0]["email_type"], "order_accepted")
            self.assertEqual(body["tracking"], [])

    def test_detail_not_found(self):
        resp = self.client.get("/api/admin/orders/404")
        self.assertEqual(resp.status_code, 404)


class TestOrderListEndpoint(unittest.TestCase):
    def setUp(self):
        self.h = Harness()
        self.client = client_for(self.h)
        self.h.seed(1, status="pending", payment_status="paid")
        self.h.seed(2, status="pending_review", payment_status="cod", customer_name="Arjun Mehta",
                    customer_email="arjun@example.com")
        self.h.seed(3, status="ready_to_dispatch", awb_code="AWB777")
        self.h.seed(4, status="rto_initiated")
        self.h.seed(5, status="delivered", payment_status="cod")

    def test_list_all_with_stats(self):
        body = self.client.get("/api/admin/orders").json()

        self.assertEqual(body["count"], 5)
        self.assertEqual(body["stats"], {
            "total": 5,
            "pending": 2,
            "confirmed": 0,
            "processing": 1,
            "shipped": 0,
            "delivered": 1,
            "cancelled": 1,
            "paid": 3,
        })

    def test_status_group_filter(self):
        body = self.client.get("/api/admin/orders", params={"status": "pending"}).json()
        self.assertEqual(sorted(o["id"] for o in body["orders"]), [1, 2])

        body = self.client.get("/api/admin/orders", params={"status": "cancelled"}).json()
        self.assertEqual([o["id"] for o in body["orders"]], [4])

        body = self.client.get("/api/admin/orders", params={"status": "delivered"}).json()
        self.assertEqual([o["id"] for o in body["orders"]], [5])

    def test_payment_filter_and_search(self):
        body = self.client.get("/api/admin/orders", params={"payment": "cod"}).json()
        self.assertEqual(sorted(o["id"] for o in body["orders"]), [2, 5])

        body = self.client.get("/api/admin/orders", params={"search": "ARJUN"}).json()
        self.assertEqual([o["id"] for o in body["orders"]], [2])

        body = self.client.get("/api/admin/orders", params={"search": "awb777"}).json()
        self.assertEqual([o["id"] for o in body["orders"]], [3])

    def test_pagination(self):
        body = self.client.get("/api/admin/orders", params={"limit": 2, "offset": 0}).json()
        self.assertEqual(len(body["orders"]), 2)
        self.assertEqual(body["count"], 5)

    def test_bulk_status_update(self):
        resp = self.client.post("/api/admin/orders", json={
            "action": "bulk_status_update",
            "orderIds": [1, 2, 99],
            "data": {"newStatus": "cancelled"},
        })

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["updated"], [1, 2])
        self.assertEqual(body["failed"], [{"id": 99, "error": "Order not found"}])
        self.assertEqual(self.h.order(1).status, "cancelled")

    def test_bulk_status_update_requires_new_status(self):
        resp = self.client.post("/api/admin/orders", json={"action": "bulk_status_update", "orderIds": [1]})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "newStatus is required"})

    def test_export(self):
        resp = self.client.post("/api/admin/orders", json={"action": "export", "orderIds": [3, 1]})

        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual([o["order_number"] for o in body["orders"]], ["AK1001", "AK1003"])

    def test_unknown_bulk_action(self):
        resp = self.client.post("/api/admin/orders", json={"action": "delete", "orderIds": [1]})

        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())


if __name__ == "__main__":
    unittest.main()
