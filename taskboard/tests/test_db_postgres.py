import unittest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from taskboard.db import InMemoryDbClient, PostgresDbClient
from taskboard.errors import ConflictError, StoreUnavailableError

BASE = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        self.user = self.db.create_user("alice@example.com", "$2b$hash", "Alice", "A")

    def _task(self, user_id=None, **overrides):
        fields = {
            "task": "Renew passport",
            "type": "admin",
            "timeofentry": BASE,
            "remindertime": BASE + timedelta(days=1),
        }
        fields.update(overrides)
        return self.db.create_task(user_id or self.user.id, **fields)

    def test_create_and_get_user(self):
        fetched = self.db.get_user_by_email("alice@example.com")
        self.assertEqual(fetched.id, self.user.id)
        self.assertEqual(fetched.password_hash, "$2b$hash")
        self.assertEqual(self.db.get_user(self.user.id).firstname, "Alice")
        self.assertIsNone(self.db.get_user(self.user.id + 1))
        self.assertIsNone(self.db.get_user_by_email("ALICE@example.com"))

    def test_unique_email_constraint(self):
        with self.assertRaises(ConflictError):
            self.db.create_user("alice@example.com", "$2b$other", "Eve", "E")
        self.assertEqual(self.db.get_user_by_email("alice@example.com").firstname, "Alice")

    def test_task_timestamps_come_back_as_utc(self):
        local = timezone(timedelta(hours=2))
        task = self._task(remindertime=datetime(2026, 10, 20, 11, 0, tzinfo=local))
        listed = self.db.list_tasks(self.user.id, completestatus=False, currentstatus=False)
        self.assertEqual(listed[0].id, task.id)
        self.assertEqual(
            listed[0].remindertime, datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)
        )
        self.assertEqual(listed[0].timeofentry.tzinfo, timezone.utc)

    def test_list_tasks_filters_and_orders(self):
        older = self._task(task="older", timeofentry=BASE)
        newer = self._task(task="newer", timeofentry=BASE + timedelta(hours=1))
        done = self._task(task="done", completestatus=True)
        self._task(task="archived", completestatus=True, currentstatus=True)

        pending = self.db.list_tasks(self.user.id, completestatus=False, currentstatus=False)
        self.assertEqual([t.id for t in pending], [newer.id, older.id])
        completed = self.db.list_tasks(self.user.id, completestatus=True, currentstatus=False)
        self.assertEqual([t.id for t in completed], [done.id])

    def test_reminding_before_cutoff_and_limit(self):
        due = [
            self._task(
                task=f"due {i}",
                timeofentry=BASE + timedelta(minutes=i),
                remindertime=BASE - timedelta(hours=i),
            )
            for i in range(6)
        ]
        self._task(task="later", remindertime=BASE + timedelta(hours=1))

        rows = self.db.list_tasks_reminding_before(self.user.id, BASE + timedelta(minutes=30), 5)
        self.assertEqual([t.id for t in rows], [t.id for t in reversed(due)][:5])

        other = self.db.create_user("bob@example.com", "$2b$bob", "Bob", "B")
        self.assertEqual(self.db.list_tasks_reminding_before(other.id, BASE, 5), [])

    def test_updates_are_owner_scoped(self):
        task = self._task()
        other = self.db.create_user("bob@example.com", "$2b$bob", "Bob", "B")

        self.assertIsNone(
            self.db.update_task_status(other.id, task.id, completestatus=True, currentstatus=True)
        )
        self.assertIsNone(
            self.db.update_task_content(other.id, task.id, task="x", type="y")
        )

        updated = self.db.update_task_status(
            self.user.id, task.id, completestatus=True, currentstatus=False
        )
        self.assertTrue(updated.completestatus)
        edited = self.db.update_task_content(self.user.id, task.id, task="Renew visa", type="")
        self.assertEqual(edited.task, "Renew visa")
        self.assertEqual(edited.type, "")
        self.assertTrue(edited.completestatus)

    def test_carousel_images(self):
        self.db.add_carousel_image("https://img.test/1.png", "Ann")
        self.db.add_carousel_image("https://img.test/2.png", "Ben")
        images = self.db.list_carousel_images()
        self.assertEqual(
            sorted(image.maker for image in images), ["Ann", "Ben"]
        )

    def test_backend_failure_is_store_unavailable(self):
        failure = OperationalError("SELECT 1", {}, Exception("server closed the connection"))
        with patch.object(self.db, "Session", side_effect=failure):
            with self.assertRaises(StoreUnavailableError):
                self.db.list_carousel_images()

    def test_unreachable_store_at_startup(self):
        failure = OperationalError("CREATE TABLE", {}, Exception("connection refused"))
        with patch("taskboard.db.Base.metadata.create_all", side_effect=failure):
            with self.assertRaises(StoreUnavailableError):
                PostgresDbClient("sqlite+pysqlite:///:memory:")


class InMemoryDbClientTests(unittest.TestCase):
    def test_concurrent_registrations_keep_email_unique(self):
        db = InMemoryDbClient()

        def register(n):
            try:
                return db.create_user("alice@example.com", f"$2b$hash{n}", "Alice", "A")
            except ConflictError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(register, range(32)))

        self.assertEqual(len([r for r in results if r is not None]), 1)
        self.assertEqual(len(db.users), 1)


if __name__ == "__main__":
    unittest.main()
