import unittest
from datetime import date

from fastapi.testclient import TestClient

from timesheet.allocation.models import Project, Stage, Task
from timesheet.main import create_app

from tests.helpers import InMemoryRecordStore

USER = {"X-User-Id": "user-1"}
DAY = "2024-05-06"


class TestApi(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryRecordStore()
        self.client = TestClient(create_app(self.store))

    def _open(self) -> dict:
        response = self.client.post(f"/api/days/{DAY}/session", headers=USER)
        self.assertEqual(200, response.status_code)
        return response.json()

    def _target(self, hours: int = 8, minutes: int = 0) -> dict:
        response = self.client.put(
            f"/api/days/{DAY}/session/target",
            headers=USER,
            json={"hours": hours, "minutes": minutes},
        )
        self.assertEqual(200, response.status_code)
        return response.json()

    def test_full_day_workflow(self) -> None:
        self.assertEqual("no_target", self._open()["state"])

        early = self.client.post(
            f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p1", "hours": 1}
        )
        self.assertEqual(409, early.status_code)
        self.assertEqual("InvalidTransition", early.json()["error"])

        self.assertEqual("target_set", self._target(8, 0)["state"])

        added = self.client.post(
            f"/api/days/{DAY}/session/entries",
            headers=USER,
            json={"project_ref": "p1", "hours": 7, "minutes": 30},
        )
        self.assertEqual(200, added.status_code)
        self.assertEqual(93.75, added.json()["entries"][0]["percentage"])

        rejected = self.client.post(
            f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p2", "minutes": 40}
        )
        self.assertEqual(409, rejected.status_code)
        self.assertEqual("OverCapacity", rejected.json()["error"])
        self.assertEqual(490, rejected.json()["attempted_minutes"])
        self.assertEqual(480, rejected.json()["allowed_minutes"])

        drafted = self.client.post(
            f"/api/days/{DAY}/session/drafts", headers=USER, json={"project_ref": "p2", "minutes": 30}
        )
        self.assertEqual("staging", drafted.json()["state"])
        self.assertEqual(480, drafted.json()["summary"]["allocated_minutes"])

        committed = self.client.post(f"/api/days/{DAY}/session/drafts/commit", headers=USER)
        self.assertEqual(1, committed.json()["committed"])
        self.assertEqual(2, len(committed.json()["session"]["entries"]))

        saved = self.client.post(f"/api/days/{DAY}/session/save", headers=USER)
        self.assertEqual(200, saved.status_code)
        self.assertEqual("saved", saved.json()["state"])

        day = self.client.get(f"/api/days/{DAY}", headers=USER).json()
        self.assertEqual(480, day["target_minutes"])
        self.assertEqual([450, 30], [e["total_minutes"] for e in day["entries"]])

    def test_percentage_entry(self) -> None:
        self._open()
        self._target(6, 0)
        response = self.client.post(
            f"/api/days/{DAY}/session/drafts", headers=USER, json={"project_ref": "p1", "percentage": 50}
        )
        draft = response.json()["drafts"][0]
        self.assertEqual((3, 0), (draft["hours"], draft["minutes"]))

    def test_invalid_duration_is_rejected(self) -> None:
        self._open()
        self._target()
        response = self.client.post(
            f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p1", "hours": 1, "minutes": 75}
        )
        self.assertEqual(422, response.status_code)
        self.assertEqual("ValidationError", response.json()["error"])

        missing_project = self.client.post(
            f"/api/days/{DAY}/session/entries", headers=USER, json={"hours": 1}
        )
        self.assertEqual(422, missing_project.status_code)

    def test_default_target(self) -> None:
        self._open()
        response = self.client.put(f"/api/days/{DAY}/session/target", headers=USER, json={})
        self.assertEqual(480, response.json()["target_minutes"])

    def test_persisted_target(self) -> None:
        self._open()
        self.client.put(
            f"/api/days/{DAY}/session/target", headers=USER, json={"hours": 6, "persist": True}
        )
        self.assertEqual(360, self.store.targets[("user-1", date(2024, 5, 6))])

    def test_failed_target_store_leaves_session_unchanged(self) -> None:
        self._open()
        self.store.fail_on.add("upsert_daily_target")

        response = self.client.put(
            f"/api/days/{DAY}/session/target", headers=USER, json={"hours": 6, "persist": True}
        )

        self.assertEqual(503, response.status_code)
        session = self._open()
        self.assertEqual("no_target", session["state"])
        self.assertIsNone(session["target_minutes"])

    def test_edit_entry_and_draft(self) -> None:
        self._open()
        self._target()
        entry = self.client.post(
            f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p1", "hours": 2}
        ).json()["entries"][0]
        draft = self.client.post(
            f"/api/days/{DAY}/session/drafts", headers=USER, json={"project_ref": "p2", "hours": 1}
        ).json()["drafts"][0]

        edited = self.client.patch(
            f"/api/days/{DAY}/session/entries/{entry['id']}", headers=USER, json={"hours": 3}
        )
        self.assertEqual(200, edited.status_code)
        self.assertEqual(37.5, edited.json()["entries"][0]["percentage"])

        rejected = self.client.patch(
            f"/api/days/{DAY}/session/drafts/{draft['id']}", headers=USER, json={"hours": 6}
        )
        self.assertEqual(409, rejected.status_code)
        self.assertEqual(60, self._open()["drafts"][0]["total_minutes"])

    def test_saved_session_is_released(self) -> None:
        self._open()
        self._target()
        self.client.post(f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p1", "hours": 2})

        saved = self.client.post(f"/api/days/{DAY}/session/save", headers=USER)

        self.assertEqual("saved", saved.json()["state"])
        self.assertEqual(0, self.client.get("/status").json()["open_sessions"])
        reopened = self._open()
        self.assertEqual("saved", reopened["state"])
        self.assertEqual([120], [e["total_minutes"] for e in reopened["entries"]])

    def test_duplicate_previous_day(self) -> None:
        self.store.seed_entry("user-1", date(2024, 5, 3), 120, "p9")
        self._open()
        self._target(4, 0)
        response = self.client.post(f"/api/days/{DAY}/session/duplicate", headers=USER)
        drafts = response.json()["drafts"]
        self.assertEqual(["p9"], [d["project_ref"] for d in drafts])
        self.assertEqual(50.0, drafts[0]["percentage"])

    def test_save_failure_surfaces_as_503(self) -> None:
        self._open()
        self._target()
        self.client.post(f"/api/days/{DAY}/session/entries", headers=USER, json={"project_ref": "p1", "hours": 2})
        self.store.fail_on.add("insert_entries")

        response = self.client.post(f"/api/days/{DAY}/session/save", headers=USER)

        self.assertEqual(503, response.status_code)
        self.assertEqual("StoreUnavailable", response.json()["error"])
        state = self.client.post(f"/api/days/{DAY}/session", headers=USER).json()["state"]
        self.assertEqual("staging", state)

    def test_close_session_discards_without_store_calls(self) -> None:
        self._open()
        self._target()
        calls_before = list(self.store.calls)

        response = self.client.delete(f"/api/days/{DAY}/session", headers=USER)

        self.assertEqual(200, response.status_code)
        self.assertEqual(calls_before, self.store.calls)
        again = self.client.delete(f"/api/days/{DAY}/session", headers=USER)
        self.assertEqual(404, again.status_code)

    def test_unknown_session_and_entry(self) -> None:
        response = self.client.post(f"/api/days/{DAY}/session/drafts/commit", headers=USER)
        self.assertEqual(404, response.status_code)

        self._open()
        self._target()
        missing = self.client.delete(f"/api/days/{DAY}/session/drafts/nope", headers=USER)
        self.assertEqual(404, missing.status_code)

    def test_user_header_is_required(self) -> None:
        response = self.client.post(f"/api/days/{DAY}/session")
        self.assertEqual(422, response.status_code)

    def test_calendar_month(self) -> None:
        self.store.seed_entry("user-1", date(2024, 5, 2), 480)
        self.store.seed_entry("user-1", date(2024, 5, 3), 120)

        days = self.client.get("/api/calendar/2024/5", headers=USER).json()

        self.assertEqual(31, len(days))
        statuses = {d["date"]: d["status"] for d in days}
        self.assertEqual("complete", statuses["2024-05-02"])
        self.assertEqual("partial", statuses["2024-05-03"])
        self.assertEqual("empty", statuses["2024-05-04"])

        self.assertEqual(422, self.client.get("/api/calendar/2024/13", headers=USER).status_code)

    def test_reference_data(self) -> None:
        self.store.projects = [Project(id="p1", name="Website"), Project(id="p2", name="Old", status="closed")]
        self.store.stages = [Stage(id="s1", name="Design", project_ref="p1")]
        self.store.tasks = [Task(id="t1", name="Wireframes", stage_ref="s1")]

        self.assertEqual([{"id": "p1", "name": "Website"}], self.client.get("/api/projects").json())
        self.assertEqual(
            [{"id": "s1", "name": "Design"}], self.client.get("/api/projects/p1/stages").json()
        )
        self.assertEqual(
            [{"id": "t1", "name": "Wireframes"}], self.client.get("/api/stages/s1/tasks").json()
        )


if __name__ == "__main__":
    unittest.main()
