import unittest
from datetime import timedelta

from support import make_session_factory, make_client, reset_overrides, add_admin, ADMIN_USERNAME, ADMIN_PASSWORD
from auth.models import Admin, AdminActivityLog
from auth.services import AuthService
from config import settings


class TestAuthService(unittest.TestCase):
    def test_session_token_round_trip(self):
        token = AuthService.create_session_token("admin-1")
        self.assertEqual(AuthService.decode_session_token(token), "admin-1")

    def test_expired_or_tampered_token_is_rejected(self):
        expired = AuthService.create_session_token("admin-1", expires_delta=timedelta(minutes=-5))
        self.assertIsNone(AuthService.decode_session_token(expired))
        self.assertIsNone(AuthService.decode_session_token("not-a-jwt"))

    def test_inactive_admin_cannot_authenticate(self):
        db = make_session_factory()()
        add_admin(db, is_active=False)
        self.assertIsNone(AuthService.authenticate_admin(ADMIN_USERNAME, ADMIN_PASSWORD, db))
        db.close()


class TestSessionApi(unittest.TestCase):
    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.admin = add_admin(self.db)
        self.client = make_client(self.session_factory, login=False)

    def tearDown(self):
        reset_overrides()
        self.db.close()

    def test_login_sets_cookie_and_session_reports_admin(self):
        response = self.client.post("/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})

        self.assertEqual(response.status_code, 200)
        self.assertIn(settings.SESSION_COOKIE_NAME, response.cookies)
        self.assertIn("httponly", response.headers["set-cookie"].lower())
        session = self.client.get("/admin/session").json()
        self.assertEqual(session["admin"]["username"], ADMIN_USERNAME)
        self.assertIsNotNone(session["admin"]["lastLoginAt"])

    def test_wrong_password_is_unauthorized(self):
        response = self.client.post("/admin/login", json={"username": ADMIN_USERNAME, "password": "nope"})
        self.assertEqual(response.status_code, 401)

    def test_session_without_cookie_is_empty(self):
        self.assertEqual(self.client.get("/admin/session").json(), {"admin": None})

    def test_logout_clears_session(self):
        self.client.post("/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})

        response = self.client.delete("/admin/session")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get("/admin/session").json(), {"admin": None})
        actions = [row.action_type for row in self.db.query(AdminActivityLog).all()]
        self.assertEqual(sorted(actions), ["LOGIN", "LOGOUT"])

    def test_deactivated_admin_loses_session(self):
        self.client.post("/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        self.db.query(Admin).filter(Admin.id == self.admin.id).update({"is_active": False})
        self.db.commit()

        self.assertEqual(self.client.get("/admin").status_code, 401)


class TestAdminApi(unittest.TestCase):
    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.admin = add_admin(self.db)
        self.admin_id = self.admin.id
        self.client = make_client(self.session_factory)

    def tearDown(self):
        reset_overrides()
        self.db.close()

    def create_admin(self, username="content_editor"):
        response = self.client.post(
            "/admin", json={"username": username, "password": "editor-pass", "email": "editor@tryout.id"}
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_and_list(self):
        created = self.create_admin()

        self.assertFalse(created["isSuperAdmin"])
        self.assertNotIn("passwordHash", created)
        usernames = [a["username"] for a in self.client.get("/admin").json()]
        self.assertEqual(sorted(usernames), ["content_editor", ADMIN_USERNAME])

    def test_invalid_username_is_rejected(self):
        response = self.client.post("/admin", json={"username": "bad name!", "password": "editor-pass"})
        self.assertEqual(response.status_code, 422)

    def test_duplicate_username_conflicts(self):
        self.create_admin()
        response = self.client.post("/admin", json={"username": "content_editor", "password": "another-pass"})
        self.assertEqual(response.status_code, 409)

    def test_password_change_is_logged_and_takes_effect(self):
        created = self.create_admin()

        response = self.client.patch(f"/admin/{created['id']}", json={"password": "fresh-pass", "fullName": "Editor"})

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["fullName"], "Editor")
        editor = self.db.query(Admin).filter(Admin.id == created["id"]).one()
        self.assertTrue(AuthService.verify_password("fresh-pass", editor.password_hash))
        logged = self.db.query(AdminActivityLog).filter(AdminActivityLog.action_type == "PASSWORD_CHANGE").count()
        self.assertEqual(logged, 1)

    def test_empty_update_is_bad_request(self):
        created = self.create_admin()
        self.assertEqual(self.client.patch(f"/admin/{created['id']}", json={}).status_code, 400)

    def test_cannot_delete_or_deactivate_self(self):
        self.assertEqual(self.client.delete(f"/admin/{self.admin_id}").status_code, 400)
        self.assertEqual(self.client.patch(f"/admin/{self.admin_id}", json={"isActive": False}).status_code, 400)

    def test_delete_is_soft(self):
        created = self.create_admin()

        response = self.client.delete(f"/admin/{created['id']}")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["isActive"])
        self.assertEqual(self.db.query(Admin).count(), 2)

    def test_logs_include_admin_username(self):
        self.create_admin()

        logs = self.client.get("/admin/logs", params={"resource_type": "ADMIN"}).json()

        self.assertTrue(logs)
        self.assertTrue(all(entry["adminUsername"] == ADMIN_USERNAME for entry in logs))

    def test_unknown_admin_is_not_found(self):
        self.assertEqual(self.client.get("/admin/missing").status_code, 404)


if __name__ == "__main__":
    unittest.main()
