import unittest
from datetime import datetime
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from support import make_session_factory, add_admin
from admin.services import ActivityLogger, ActionType, ResourceType, get_request_info
from auth.models import AdminActivityLog


def fake_request(headers=None, host="10.0.0.7"):
    request = MagicMock()
    request.headers = headers or {}
    request.client.host = host
    return request


class TestGetRequestInfo(unittest.TestCase):
    def test_first_forwarded_hop_wins(self):
        request = fake_request({"x-forwarded-for": "203.0.113.9, 10.0.0.1", "x-real-ip": "198.51.100.2", "user-agent": "curl/8.0"})
        self.assertEqual(get_request_info(request), ("203.0.113.9", "curl/8.0"))

    def test_real_ip_then_socket_peer(self):
        self.assertEqual(get_request_info(fake_request({"x-real-ip": "198.51.100.2"}))[0], "198.51.100.2")
        self.assertEqual(get_request_info(fake_request({}))[0], "10.0.0.7")

    def test_no_request(self):
        self.assertEqual(get_request_info(None), (None, None))


class TestActivityLogger(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.admin = add_admin(self.db)

    def tearDown(self):
        self.db.close()

    def test_entry_is_written_with_serialisable_metadata(self):
        entry = ActivityLogger.log(
            self.db, self.admin.id, ActionType.UPDATE, ResourceType.TRANSACTION,
            resource_id="txn-1",
            description="Updated transaction txn-1",
            metadata={"old_values": {"paid_at": datetime(2024, 1, 1, 8, 0)}},
            request=fake_request({"user-agent": "pytest"})
        )

        self.assertIsNotNone(entry)
        stored = self.db.query(AdminActivityLog).one()
        self.assertEqual(stored.metadata_["old_values"]["paid_at"], "2024-01-01T08:00:00")
        self.assertEqual(stored.ip_address, "10.0.0.7")
        self.assertEqual(stored.user_agent, "pytest")

    def test_logs_are_listed_with_admin_username(self):
        ActivityLogger.log(self.db, self.admin.id, ActionType.LOGIN, ResourceType.ADMIN, resource_id=self.admin.id)
        ActivityLogger.log(self.db, self.admin.id, ActionType.CREATE, ResourceType.CATEGORY, resource_id="cat-1")

        logs = ActivityLogger.get_logs(self.db, resource_type=ResourceType.CATEGORY)

        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].action_type, ActionType.CREATE)
        self.assertEqual(logs[0].admin_username, self.admin.username)

    def test_failed_write_is_rolled_back_and_not_raised(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT INTO admin_activity_logs", {}, Exception("database is locked"))

        with self.assertLogs("admin.services", level="ERROR"):
            entry = ActivityLogger.log(db, "admin-1", ActionType.DELETE, ResourceType.PACKAGE, resource_id="pkg-1")

        self.assertIsNone(entry)
        db.rollback.assert_called_once()

    def test_unserialisable_metadata_is_logged_and_not_raised(self):
        with self.assertLogs("admin.services", level="ERROR"):
            entry = ActivityLogger.log(
                self.db, self.admin.id, ActionType.UPDATE, ResourceType.PACKAGE,
                resource_id="pkg-1", metadata={"value": object()}
            )

        self.assertIsNone(entry)
        self.assertEqual(self.db.query(AdminActivityLog).count(), 0)

    def test_unreadable_request_is_logged_and_not_raised(self):
        request = fake_request()
        request.headers = MagicMock()
        request.headers.get.side_effect = RuntimeError("headers already consumed")

        with self.assertLogs("admin.services", level="ERROR"):
            entry = ActivityLogger.log(
                self.db, self.admin.id, ActionType.LOGIN, ResourceType.ADMIN, resource_id=self.admin.id, request=request
            )

        self.assertIsNone(entry)
        self.assertEqual(self.db.query(AdminActivityLog).count(), 0)


if __name__ == "__main__":
    unittest.main()
