import unittest

from support import make_session_factory, make_client, reset_overrides, add_admin, add_subscription_type, add_transaction, active_rows
from auth.models import AdminActivityLog

USER_ID = "9b4f7c21-6e0d-4a58-b3f2-0c8e1d5a7f66"


class TestTransactionApi(unittest.TestCase):
    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        add_admin(self.db)
        self.gold = add_subscription_type(self.db, name="Gold", duration_days=30, price=150000.0)
        self.client = make_client(self.session_factory)

    def tearDown(self):
        reset_overrides()
        self.db.close()

    def test_create_paid_transaction_activates_subscription(self):
        response = self.client.post(
            "/transactions",
            json={"userId": USER_ID, "subscriptionTypeId": self.gold.id, "paymentMethod": "bank_transfer", "paymentStatus": "paid"}
        )

        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["amount"], 150000.0)
        self.assertIsNotNone(body["paidAt"])
        self.assertFalse(body["subscriptionUpdated"])
        self.assertEqual(body["subscriptionTypeName"], "Gold")
        rows = active_rows(self.db, USER_ID)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].id, body["userSubscriptionId"])

    def test_create_pending_transaction(self):
        response = self.client.post("/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id})

        body = response.json()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["paymentStatus"], "pending")
        self.assertIsNone(body["paidAt"])
        self.assertIsNone(body["userSubscriptionId"])
        self.assertEqual(active_rows(self.db, USER_ID), [])

    def test_invalid_status_is_rejected_by_schema(self):
        response = self.client.post(
            "/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id, "paymentStatus": "refunded"}
        )
        self.assertEqual(response.status_code, 422)

    def test_patch_to_paid_then_cancelled(self):
        transaction = add_transaction(self.db, USER_ID, self.gold)

        paid = self.client.patch(f"/transactions/{transaction.id}", json={"paymentStatus": "paid"})
        cancelled = self.client.patch(f"/transactions/{transaction.id}", json={"paymentStatus": "cancelled"})

        self.assertEqual(paid.status_code, 200, paid.text)
        self.assertIsNotNone(paid.json()["userSubscriptionId"])
        self.assertIsNone(cancelled.json()["paidAt"])
        self.assertIsNone(cancelled.json()["userSubscriptionId"])
        self.assertEqual(len(active_rows(self.db, USER_ID)), 1)
        logged = self.db.query(AdminActivityLog).filter(AdminActivityLog.resource_type == "TRANSACTION"
        ).order_by(AdminActivityLog.created_at).all()
        self.assertEqual(len(logged), 2)
        self.assertEqual(logged[0].metadata_["old_values"]["payment_status"], "pending")

    def test_second_paid_transaction_updates_subscription(self):
        first = self.client.post(
            "/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id, "paymentStatus": "paid"}
        ).json()
        second = self.client.post(
            "/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id, "paymentStatus": "paid"}
        ).json()

        self.assertTrue(second["subscriptionUpdated"])
        self.assertEqual(first["userSubscriptionId"], second["userSubscriptionId"])
        rows = active_rows(self.db, USER_ID)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].transaction_id, second["id"])

    def test_filters_and_lookup(self):
        add_transaction(self.db, USER_ID, self.gold, payment_status="paid")
        pending = add_transaction(self.db, USER_ID, self.gold)
        add_transaction(self.db, "someone-else", self.gold)

        listed = self.client.get("/transactions", params={"user_id": USER_ID, "payment_status": "pending"}).json()

        self.assertEqual([t["id"] for t in listed], [pending.id])
        self.assertEqual(self.client.get(f"/transactions/{pending.id}").json()["userId"], USER_ID)
        self.assertEqual(self.client.get("/transactions/missing").status_code, 404)

    def test_delete_linked_transaction_conflicts(self):
        created = self.client.post(
            "/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id, "paymentStatus": "paid"}
        ).json()
        unused = add_transaction(self.db, USER_ID, self.gold)

        self.assertEqual(self.client.delete(f"/transactions/{created['id']}").status_code, 409)
        self.assertEqual(self.client.delete(f"/transactions/{unused.id}").status_code, 204)

    def test_mutations_require_login(self):
        self.client.cookies.clear()
        response = self.client.post("/transactions", json={"userId": USER_ID, "subscriptionTypeId": self.gold.id})
        self.assertEqual(response.status_code, 401)


if __name__ == "__main__":
    unittest.main()
