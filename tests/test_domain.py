import unittest
from datetime import date

from storefront.domain import statuses
from storefront.domain.actions import (
    AcceptAction,
    BulkOrdersRequest,
    RejectAction,
    UpdateStatusAction,
    parse_action,
)
from storefront.domain.errors import InvalidInputError
from storefront.domain.shipping import (
    TrackingUpdate,
    map_courier_status,
    parse_courier_date,
    parse_courier_datetime,
)


class TestParseAction(unittest.TestCase):
    def test_each_action_gets_its_own_model(self):
        self.assertIsInstance(parse_action({"action": "accept", "notes": "ok"}), AcceptAction)

        reject = parse_action({"action": "reject", "reason": " Out of stock "})
        self.assertIsInstance(reject, RejectAction)
        self.assertEqual(reject.reason, "Out of stock")

        update = parse_action({"action": "update_status", "newStatus": "shipped"})
        self.assertIsInstance(update, UpdateStatusAction)
        self.assertEqual(update.new_status, "shipped")

    def test_error_messages(self):
        cases = [
            ({"action": "ship"}, "Unknown action: ship"),
            ({}, "action is required"),
            ({"action": "reject"}, "reason is required"),
            ({"action": "reject", "reason": ""}, "Rejection reason is required"),
            ({"action": "update_status"}, "newStatus is required"),
            ({"action": "update_status", "newStatus": "lost"}, "Unknown status: lost"),
        ]
        for payload, message in cases:
            with self.subTest(payload=payload):
                with self.assertRaises(InvalidInputError) as ctx:
                    parse_action(payload)
                self.assertEqual(ctx.exception.message, message)

    def test_bulk_request_aliases(self):
        body = BulkOrdersRequest.model_validate(
            {"action": "bulk_status_update", "orderIds": [1, 2], "data": {"newStatus": "shipped"}}
        )
        self.assertEqual(body.order_ids, [1, 2])
        self.assertEqual(body.data.new_status, "shipped")

        export = BulkOrdersRequest.model_validate({"action": "export", "orderIds": [3]})
        self.assertIsNone(export.data.new_status)


class TestStatuses(unittest.TestCase):
    def test_forward_moves(self):
        self.assertTrue(statuses.is_forward_move("ready_to_dispatch", "shipped"))
        self.assertTrue(statuses.is_forward_move("delivered", "rto_initiated"))
        self.assertFalse(statuses.is_forward_move("delivered", "shipped"))
        self.assertFalse(statuses.is_forward_move("pending", "pending_review"))

    def test_labels(self):
        self.assertEqual(statuses.status_label("rto_delivered"), "Returned to Seller")
        self.assertEqual(statuses.status_label("lost_in_transit"), "Lost In Transit")


class TestCourierData(unittest.TestCase):
    def test_status_map(self):
        self.assertEqual(map_courier_status(6), "shipped")
        self.assertEqual(map_courier_status("17"), "out_for_delivery")
        self.assertEqual(map_courier_status(7), "delivered")
        self.assertEqual(map_courier_status(999), "processing")
        self.assertEqual(map_courier_status(None), "processing")

    def test_datetimes_are_ist(self):
        parsed = parse_courier_datetime("2023-05-23 11:43:52")
        self.assertEqual(parsed.utcoffset().total_seconds(), 5.5 * 3600)
        self.assertEqual((parsed.hour, parsed.minute), (11, 43))

        self.assertEqual(parse_courier_datetime("23 05 2023 11:43:52").day, 23)
        self.assertIsNone(parse_courier_datetime("next tuesday"))
        self.assertIsNone(parse_courier_datetime(None))

    def test_dates(self):
        self.assertEqual(parse_courier_date("2024-06-20 18:00:00"), date(2024, 6, 20))
        self.assertEqual(parse_courier_date("2024-06-20"), date(2024, 6, 20))

    def test_tracking_update_from_payload(self):
        update = TrackingUpdate.from_payload({
            "awb": "AWB1",
            "sr_order_id": 42,
            "shipment_status_id": 18,
            "shipment_status": "IN TRANSIT",
            "is_return": 1,
        })
        self.assertEqual(update.awb_code, "AWB1")
        self.assertEqual(update.shiprocket_order_id, "42")
        self.assertEqual(update.status_id, 18)
        self.assertEqual(update.status_text, "IN TRANSIT")
        self.assertTrue(update.is_return)
        self.assertEqual(update.scans, [])


if __name__ == "__main__":
    unittest.main()
