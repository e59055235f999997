import unittest
from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from support import make_session_factory, make_client, reset_overrides, add_admin, add_subscription_type, add_transaction
from content.models import Category, Package, Tryout, SubChapter
from question.models import Question, QuestionSubChapter
from dashboard.services import DashboardService
from scheduler import tasks
from subscription.models import UserSubscription

NOW = datetime(2024, 9, 1, 12, 0)


def add_subscription(db, user_id, subscription_type, expires_at, is_active=True):
    subscription = UserSubscription(
        user_id=user_id,
        subscription_type_id=subscription_type.id,
        started_at=datetime(2024, 8, 1),
        expires_at=expires_at,
        is_active=is_active
    )
    db.add(subscription)
    db.commit()
    return subscription


class TestDashboardStats(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.gold = add_subscription_type(self.db, name="Gold")
        add_subscription_type(self.db, name="Legacy", is_active=False)

    def tearDown(self):
        self.db.close()

    def test_counts(self):
        package = Package(name="Paket A", is_active=True)
        self.db.add_all([package, Category(name="Matematika")])
        self.db.flush()
        self.db.add_all([
            Tryout(title="TO 1", duration_minutes=90, package_id=package.id, is_active=True),
            Tryout(title="TO 2", duration_minutes=90, package_id=package.id, is_active=False),
        ])
        self.db.commit()
        add_transaction(self.db, "user-1", self.gold, payment_status="paid")
        add_transaction(self.db, "user-2", self.gold)
        add_transaction(self.db, "user-3", self.gold, payment_status="failed")
        add_subscription(self.db, "user-1", self.gold, expires_at=datetime(2024, 10, 1))
        add_subscription(self.db, "user-2", self.gold, expires_at=datetime(2024, 8, 15))

        stats = DashboardService.get_stats(self.db, now=NOW)

        self.assertEqual((stats.tryouts.total, stats.tryouts.active, stats.tryouts.inactive), (2, 1, 1))
        self.assertEqual(stats.subscription_types.inactive, 1)
        self.assertEqual(stats.categories, 1)
        self.assertEqual((stats.transactions.total, stats.transactions.paid, stats.transactions.pending), (3, 1, 1))
        # Flagged active but past expiry counts as expired
        self.assertEqual(stats.user_subscriptions.active, 1)
        self.assertEqual(stats.user_subscriptions.expired, 1)


class TestDashboardHealth(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()

    def tearDown(self):
        self.db.close()

    def test_clean_content_has_no_warnings(self):
        self.assertEqual(DashboardService.get_health(self.db).warnings, [])

    def test_content_gaps_are_reported(self):
        category = Category(name="Matematika")
        full, empty = Package(name="Paket Lengkap"), Package(name="Paket Kosong")
        self.db.add_all([category, full, empty])
        self.db.flush()
        complete = Tryout(title="TO Lengkap", duration_minutes=90, package_id=full.id)
        bare = Tryout(title="TO Kosong", duration_minutes=90, package_id=full.id)
        unfilled = Tryout(title="TO Tanpa Soal", duration_minutes=90, package_id=full.id)
        self.db.add_all([complete, bare, unfilled])
        self.db.flush()
        filled_sub_chapter = SubChapter(tryout_id=complete.id, category_id=category.id)
        self.db.add_all([filled_sub_chapter, SubChapter(tryout_id=unfilled.id, category_id=category.id)])
        categorized = Question(text="1 + 1 = ?", category_id=category.id)
        self.db.add_all([categorized, Question(text="Ibu kota Indonesia?"), Question(text="2 + 2 = ?")])
        self.db.flush()
        self.db.add(QuestionSubChapter(question_id=categorized.id, sub_chapter_id=filled_sub_chapter.id))
        self.db.commit()

        warnings = {w.type: w for w in DashboardService.get_health(self.db).warnings}

        self.assertEqual(warnings["tryout_no_subchapters"].tryout_ids, [bare.id])
        self.assertEqual(warnings["tryout_no_subchapters"].message, "1 tryout tanpa sub-bab")
        self.assertEqual(set(warnings["tryout_no_questions"].tryout_titles), {"TO Kosong", "TO Tanpa Soal"})
        self.assertEqual(warnings["tryout_no_questions"].count, 2)
        self.assertEqual(warnings["package_no_tryouts"].package_names, ["Paket Kosong"])
        self.assertEqual(warnings["questions_no_category"].count, 2)
        self.assertEqual(warnings["questions_no_category"].message, "2 soal tanpa kategori")


class TestDashboardApi(unittest.TestCase):
    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        add_admin(self.db)

    def tearDown(self):
        reset_overrides()
        self.db.close()

    def test_requires_login(self):
        client = make_client(self.session_factory, login=False)
        self.assertEqual(client.get("/dashboard/stats").status_code, 401)

    def test_stats_and_activities(self):
        client = make_client(self.session_factory)

        stats = client.get("/dashboard/stats")
        activities = client.get("/dashboard/activities", params={"limit": 5})

        self.assertEqual(stats.status_code, 200)
        self.assertIn("userSubscriptions", stats.json())
        self.assertEqual(activities.json()[0]["actionType"], "LOGIN")

    def test_health_lists_empty_packages_in_camel_case(self):
        self.db.add(Package(name="Paket Kosong"))
        self.db.commit()
        client = make_client(self.session_factory)

        response = client.get("/dashboard/health")

        self.assertEqual(response.status_code, 200)
        warning = response.json()["warnings"][0]
        self.assertEqual(warning["type"], "package_no_tryouts")
        self.assertEqual(warning["packageNames"], ["Paket Kosong"])
        self.assertNotIn("tryoutIds", warning)


class TestExpirySweep(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.gold = add_subscription_type(self.db, name="Gold")

    def tearDown(self):
        self.db.close()

    def test_only_expired_rows_are_deactivated(self):
        expired = add_subscription(self.db, "user-1", self.gold, expires_at=datetime(2024, 8, 31))
        current = add_subscription(self.db, "user-2", self.gold, expires_at=datetime(2024, 9, 30))

        count = tasks.deactivate_expired_subscriptions(db=self.db, now=NOW)

        self.assertEqual(count, 1)
        self.assertFalse(expired.is_active)
        self.assertTrue(current.is_active)

    def test_database_error_is_rolled_back(self):
        add_subscription(self.db, "user-1", self.gold, expires_at=datetime(2024, 8, 31))
        error = OperationalError("UPDATE user_subscriptions", {}, Exception("database is locked"))

        with patch.object(self.db, "commit", side_effect=error):
            with self.assertLogs("scheduler.tasks", level="ERROR"):
                count = tasks.deactivate_expired_subscriptions(db=self.db, now=NOW)

        self.assertEqual(count, 0)
        self.assertEqual(self.db.query(UserSubscription).filter(UserSubscription.is_active == True).count(), 1)

    def test_sweep_is_off_unless_enabled(self):
        self.assertFalse(tasks.settings.ENABLE_EXPIRY_SWEEP)
        with patch.object(tasks, "BackgroundScheduler") as scheduler_class:
            self.assertIsNone(tasks.start_scheduler())
        scheduler_class.assert_not_called()

    def test_scheduler_registers_sweep_job(self):
        with patch.object(tasks.settings, "ENABLE_EXPIRY_SWEEP", True), \
                patch.object(tasks, "BackgroundScheduler") as scheduler_class:
            scheduler = tasks.start_scheduler()

        scheduler_class.return_value.add_job.assert_called_once_with(
            tasks.deactivate_expired_subscriptions, 'interval', minutes=tasks.settings.EXPIRY_SWEEP_INTERVAL_MINUTES
        )
        scheduler.start.assert_called_once()


if __name__ == "__main__":
    unittest.main()
