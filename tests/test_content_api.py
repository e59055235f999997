import unittest
from datetime import datetime, timedelta

from support import make_session_factory, make_client, reset_overrides, add_admin, add_subscription_type
from content.models import Package, SubChapter
from question.models import AnswerOption, QuestionSubChapter
from subscription.models import UserSubscription
from timeutils import utcnow

USER_ID = "e2a7c9f0-3d1b-4c86-8a5e-7f4b0d2c6e19"

OPTIONS = [
    {"text": "2", "isCorrect": False},
    {"text": "4", "isCorrect": True},
    {"text": "5", "isCorrect": False},
]


class ContentApiTestCase(unittest.TestCase):
    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        add_admin(self.db)
        self.client = make_client(self.session_factory)

    def tearDown(self):
        reset_overrides()
        self.db.close()

    def create_category(self, name="Matematika"):
        response = self.client.post("/categories", json={"name": name})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def create_tryout(self, title="Tryout UTBK 1", package_name="Paket Intensif"):
        response = self.client.post(
            "/tryouts", json={"title": title, "durationMinutes": 120, "packageName": package_name}
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def create_question(self, text="2 + 2 = ?", options=None):
        response = self.client.post("/questions", json={"text": text, "answerOptions": options or OPTIONS})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class TestCategoriesAndPackages(ContentApiTestCase):
    def test_duplicate_category_conflicts(self):
        self.create_category()
        self.assertEqual(self.client.post("/categories", json={"name": "Matematika"}).status_code, 409)

    def test_category_used_by_sub_chapter_cannot_be_deleted(self):
        category = self.create_category()
        tryout = self.create_tryout()
        self.client.post(f"/tryouts/{tryout['id']}/sub-chapters", json={"categoryId": category["id"]})

        self.assertEqual(self.client.delete(f"/categories/{category['id']}").status_code, 409)

    def test_tryout_creates_missing_package_once(self):
        first = self.create_tryout(title="Tryout 1")
        second = self.create_tryout(title="Tryout 2", package_name=" Paket Intensif ")

        self.assertEqual(first["packageId"], second["packageId"])
        self.assertEqual(first["packageName"], "Paket Intensif")
        self.assertEqual(self.db.query(Package).count(), 1)
        listed = self.client.get(f"/packages/{first['packageId']}/tryouts").json()
        self.assertEqual(len(listed), 2)

    def test_package_with_tryouts_cannot_be_deleted(self):
        tryout = self.create_tryout()
        self.assertEqual(self.client.delete(f"/packages/{tryout['packageId']}").status_code, 409)

    def test_writes_require_login(self):
        self.client.cookies.clear()
        self.assertEqual(self.client.post("/categories", json={"name": "Fisika"}).status_code, 401)
        self.assertEqual(self.client.get("/categories").status_code, 200)


class TestSubChaptersAndQuestions(ContentApiTestCase):
    def setUp(self):
        super().setUp()
        self.category = self.create_category()
        self.tryout = self.create_tryout()
        response = self.client.post(
            f"/tryouts/{self.tryout['id']}/sub-chapters", json={"categoryId": self.category["id"], "orderIndex": 1}
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.sub_chapter = response.json()
        self.assignments_url = f"/tryouts/{self.tryout['id']}/sub-chapters/{self.sub_chapter['id']}/questions"

    def test_sub_chapter_needs_existing_category(self):
        response = self.client.post(f"/tryouts/{self.tryout['id']}/sub-chapters", json={"categoryId": "missing"})
        self.assertEqual(response.status_code, 404)

    def test_question_with_two_correct_options_is_rejected(self):
        options = [{"text": "a", "isCorrect": True}, {"text": "b", "isCorrect": True}]
        self.assertEqual(self.client.post("/questions", json={"text": "?", "answerOptions": options}).status_code, 422)

    def test_question_with_single_option_is_rejected(self):
        options = [{"text": "a", "isCorrect": True}]
        self.assertEqual(self.client.post("/questions", json={"text": "?", "answerOptions": options}).status_code, 422)

    def test_question_response_points_at_correct_option(self):
        question = self.create_question()

        self.assertEqual([o["text"] for o in question["answerOptions"]], ["2", "4", "5"])
        correct = [o["id"] for o in question["answerOptions"] if o["isCorrect"]]
        self.assertEqual(question["correctAnswerOptionId"], correct[0])

    def test_replacing_options_removes_old_rows(self):
        question = self.create_question()
        new_options = [{"text": "empat", "isCorrect": True}, {"text": "lima", "isCorrect": False}]

        response = self.client.patch(f"/questions/{question['id']}", json={"answerOptions": new_options})

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(self.db.query(AnswerOption).count(), 2)

    def test_search_and_pagination(self):
        for index in range(3):
            self.create_question(text=f"Soal aljabar {index}")
        self.create_question(text="Soal geometri")

        page = self.client.get("/questions", params={"search": "aljabar", "limit": 2, "offset": 0}).json()

        self.assertEqual(page["total"], 3)
        self.assertEqual(len(page["data"]), 2)

    def test_assignments_append_and_reject_duplicates(self):
        first = self.create_question(text="Soal 1")
        second = self.create_question(text="Soal 2")

        a = self.client.post(self.assignments_url, json={"questionId": first["id"]})
        b = self.client.post(self.assignments_url, json={"questionId": second["id"]})
        duplicate = self.client.post(self.assignments_url, json={"questionId": first["id"]})

        self.assertEqual(a.json()["orderIndex"], 0)
        self.assertEqual(b.json()["orderIndex"], 1)
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(len(self.client.get(self.assignments_url).json()), 2)

    def test_sub_chapter_with_questions_cannot_be_deleted(self):
        question = self.create_question()
        self.client.post(self.assignments_url, json={"questionId": question["id"]})

        response = self.client.delete(f"/tryouts/{self.tryout['id']}/sub-chapters/{self.sub_chapter['id']}")

        self.assertEqual(response.status_code, 409)

    def test_deleting_tryout_removes_sub_chapters_and_assignments(self):
        question = self.create_question()
        self.client.post(self.assignments_url, json={"questionId": question["id"]})

        self.assertEqual(self.client.delete(f"/tryouts/{self.tryout['id']}").status_code, 204)

        self.assertEqual(self.db.query(SubChapter).count(), 0)
        self.assertEqual(self.db.query(QuestionSubChapter).count(), 0)
        self.assertEqual(self.client.get(f"/questions/{question['id']}").status_code, 200)


class TestTryoutSessions(ContentApiTestCase):
    def setUp(self):
        super().setUp()
        self.tryout = self.create_tryout()
        self.package_id = self.tryout["packageId"]
        self.gold = add_subscription_type(self.db, name="Gold")
        self.silver = add_subscription_type(self.db, name="Silver")

    def test_single_and_bulk_creation(self):
        single = self.client.post(
            "/tryout-sessions", json={"packageId": self.package_id, "subscriptionTypeId": self.gold.id}
        )
        self.assertEqual(single.status_code, 201, single.text)
        self.assertEqual(len(single.json()), 1)

        other = self.client.post("/packages", json={"name": "Paket Reguler"}).json()
        bulk = self.client.post("/tryout-sessions", json=[
            {"packageId": self.package_id, "subscriptionTypeId": self.silver.id},
            {"packageId": other["id"], "subscriptionTypeId": self.gold.id},
        ])
        self.assertEqual(bulk.status_code, 201, bulk.text)
        self.assertEqual(len(self.client.get("/tryout-sessions").json()), 3)

    def test_duplicate_pair_rejects_whole_batch(self):
        self.client.post("/tryout-sessions", json={"packageId": self.package_id, "subscriptionTypeId": self.gold.id})

        response = self.client.post("/tryout-sessions", json=[
            {"packageId": self.package_id, "subscriptionTypeId": self.silver.id},
            {"packageId": self.package_id, "subscriptionTypeId": self.gold.id},
        ])

        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(self.client.get("/tryout-sessions").json()), 1)

    def test_user_sees_sessions_of_current_subscription_only(self):
        self.client.post("/tryout-sessions", json=[
            {"packageId": self.package_id, "subscriptionTypeId": self.gold.id},
            {"packageId": self.package_id, "subscriptionTypeId": self.silver.id,
             "availableUntil": "2000-01-01T00:00:00"},
        ])
        self.db.add(UserSubscription(
            user_id=USER_ID, subscription_type_id=self.gold.id,
            started_at=utcnow(), expires_at=utcnow() + timedelta(days=10), is_active=True
        ))
        self.db.commit()

        sessions = self.client.get(f"/tryout-sessions/user/{USER_ID}").json()

        self.assertEqual(len(sessions), 1)
        self.assertEqual(sessions[0]["subscriptionTypeName"], "Gold")
        self.assertEqual([t["title"] for t in sessions[0]["tryouts"]], ["Tryout UTBK 1"])

    def test_user_without_subscription_sees_nothing(self):
        self.client.post("/tryout-sessions", json={"packageId": self.package_id, "subscriptionTypeId": self.gold.id})
        self.db.add(UserSubscription(
            user_id=USER_ID, subscription_type_id=self.gold.id,
            expires_at=datetime(2020, 1, 1), is_active=True
        ))
        self.db.commit()

        self.assertEqual(self.client.get(f"/tryout-sessions/user/{USER_ID}").json(), [])


if __name__ == "__main__":
    unittest.main()
