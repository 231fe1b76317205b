import inspect
import unittest
from pathlib import Path

from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from chemlab.api import create_app
from chemlab.config import Settings


REACTED_RESULTS = {
    "finalFlaskStage": "reacted",
    "finalProgress": 100,
    "temperature": 30,
    "chemicalsUsed": ["Copper Sulfate", "Ammonia"],
    "reactionEquation": "CuSO4 ...",
    "reactionObservation": "deep blue",
}


def make_client(seed=True, **overrides):
    settings = Settings(
        database_path=Path(":memory:"),
        seed_demo_data=seed,
        settle_seconds=0.0,
        **overrides,
    )
    return TestClient(create_app(settings))


class TestExperimentRoutes(unittest.TestCase):
    def setUp(self):
        self.client = make_client()

    def test_home(self):
        response = self.client.get("/")
        self.assertEqual(response.json(), {"message": "Welcome to Chemistry Lab Simulator API"})

    def test_demo_experiment_listed(self):
        experiments = self.client.get("/api/experiments").json()
        self.assertEqual(len(experiments), 1)
        self.assertEqual(
            experiments[0]["evaluationCriteria"],
            "Observation accuracy, Data analysis, Conclusion quality",
        )

    def test_create_update_delete(self):
        created = self.client.post(
            "/api/experiments",
            json={"title": "Iodine clock", "description": "KI and H2O2"},
        ).json()
        experiment_id = created["id"]

        updated = self.client.put(
            f"/api/experiments/{experiment_id}",
            json={"title": "Iodine clock", "status": "upcoming"},
        )
        self.assertEqual(updated.json(), {"changes": 1})
        statuses = {e["id"]: e["status"] for e in self.client.get("/api/experiments").json()}
        self.assertEqual(statuses[experiment_id], "upcoming")

        deleted = self.client.delete(f"/api/experiments/{experiment_id}")
        self.assertEqual(deleted.json(), {"changes": 1})

    def test_experiment_needs_title(self):
        response = self.client.post("/api/experiments", json={"description": "x"})
        self.assertEqual(response.status_code, 422)

    def test_submissions_for_experiment(self):
        submissions = self.client.get("/api/experiments/1/submissions").json()
        self.assertEqual([s["studentName"] for s in submissions], ["Alice Smith", "Bob Johnson"])
        self.assertEqual(
            submissions[0]["evaluation"]["Observation accuracy"],
            {"marks": 30, "feedback": "Good observations."},
        )

    def test_reference_data(self):
        self.assertEqual(len(self.client.get("/api/reactions").json()), 6)
        self.assertEqual(len(self.client.get("/api/chemicals").json()), 11)


class TestSubmissionRoutes(unittest.TestCase):
    def setUp(self):
        self.client = make_client()

    def pending_id(self):
        submissions = self.client.get("/api/experiments/1/submissions").json()
        return next(s["id"] for s in submissions if s["status"] == "Pending Evaluation")

    def test_direct_insert(self):
        response = self.client.post(
            "/api/submissions",
            json={
                "experimentId": 1,
                "studentName": "Carol",
                "submissionDate": "2024-03-01",
                "simulatedResults": {
                    "finalFlaskStage": "reacted",
                    "finalProgress": 100,
                    "temperature": 30,
                    "chemicalsUsed": ["Copper Sulfate", "Ammonia"],
                    "reactionEquation": "CuSO4 ...",
                    "reactionObservation": "deep blue",
                },
            },
        )
        submission = self.client.get(f"/api/submissions/{response.json()['id']}").json()
        self.assertEqual(submission["status"], "Pending Evaluation")
        self.assertEqual(submission["submissionDate"], "2024-03-01")
        self.assertEqual(submission["simulatedResults"]["finalProgress"], 100)

    def test_insert_starts_pending_and_ungraded(self):
        response = self.client.post(
            "/api/submissions",
            json={
                "experimentId": 1,
                "studentName": "Carol",
                "status": "Evaluated",
                "totalMarks": 100,
                "overallFeedback": "Perfect.",
                "evaluation": {"Data analysis": {"marks": 40, "feedback": "Great"}},
                "simulatedResults": REACTED_RESULTS,
            },
        )
        self.assertEqual(response.status_code, 200)
        submission = self.client.get(f"/api/submissions/{response.json()['id']}").json()
        self.assertEqual(submission["status"], "Pending Evaluation")
        self.assertIsNone(submission["totalMarks"])
        self.assertEqual(submission["overallFeedback"], "")
        self.assertEqual(
            submission["evaluation"], {"Data analysis": {"marks": None, "feedback": ""}}
        )

    def test_insert_seeds_experiment_criteria(self):
        response = self.client.post(
            "/api/submissions",
            json={"experimentId": 1, "studentName": "Carol", "simulatedResults": REACTED_RESULTS},
        )
        submission = self.client.get(f"/api/submissions/{response.json()['id']}").json()
        self.assertEqual(
            list(submission["evaluation"]),
            ["Observation accuracy", "Data analysis", "Conclusion quality"],
        )

    def test_insert_needs_student_name(self):
        response = self.client.post(
            "/api/submissions",
            json={"experimentId": 1, "studentName": "   ", "simulatedResults": REACTED_RESULTS},
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("name", response.json()["error"])
        self.assertEqual(len(self.client.get("/api/experiments/1/submissions").json()), 2)

    def test_insert_needs_completed_reaction(self):
        response = self.client.post(
            "/api/submissions",
            json={
                "experimentId": 1,
                "studentName": "Carol",
                "simulatedResults": {**REACTED_RESULTS, "finalFlaskStage": "mixing"},
            },
        )
        self.assertEqual(response.status_code, 422)

    def test_insert_needs_simulated_results(self):
        response = self.client.post(
            "/api/submissions", json={"experimentId": 1, "studentName": "Carol"}
        )
        self.assertEqual(response.status_code, 422)

    def test_insert_for_unknown_experiment(self):
        response = self.client.post(
            "/api/submissions",
            json={"experimentId": 99, "studentName": "Carol", "simulatedResults": REACTED_RESULTS},
        )
        self.assertEqual(response.status_code, 404)

    def test_grade_and_finalize(self):
        submission_id = self.pending_id()
        response = self.client.put(
            f"/api/submissions/{submission_id}",
            json={
                "status": "Evaluated",
                "totalMarks": 72,
                "evaluation": {"Data analysis": {"feedback": "Check units."}},
                "overallFeedback": "Decent.",
            },
        )
        self.assertEqual(response.json(), {"changes": 1})
        submission = self.client.get(f"/api/submissions/{submission_id}").json()
        self.assertEqual(submission["status"], "Evaluated")
        self.assertEqual(submission["totalMarks"], 72)
        self.assertEqual(
            submission["evaluation"]["Data analysis"],
            {"marks": None, "feedback": "Check units."},
        )

    def test_out_of_range_marks_not_stored(self):
        submission_id = self.pending_id()
        response = self.client.put(
            f"/api/submissions/{submission_id}",
            json={"totalMarks": 150, "overallFeedback": "Too generous."},
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("error", response.json())
        submission = self.client.get(f"/api/submissions/{submission_id}").json()
        self.assertIsNone(submission["totalMarks"])
        self.assertEqual(submission["overallFeedback"], "")

    def test_unknown_submission(self):
        response = self.client.put("/api/submissions/999", json={"totalMarks": 10})
        self.assertEqual(response.status_code, 404)


class TestSessionRoutes(unittest.TestCase):
    def setUp(self):
        self.client = make_client()
        self.sid = self.client.post("/api/sessions").json()["sessionId"]

    def toggle(self, name):
        return self.client.post(f"/api/sessions/{self.sid}/chemicals", json={"name": name})

    def test_full_experiment(self):
        self.toggle("Hydrogen Peroxide")
        state = self.toggle("Potassium Iodide").json()
        self.assertEqual(state["flaskStage"], "two_chemicals_selected")

        mixed = self.client.post(f"/api/sessions/{self.sid}/mix").json()
        self.assertTrue(mixed["completed"])
        self.assertEqual(mixed["flaskStage"], "reacted")
        self.assertEqual(mixed["progress"], 100)

        submitted = self.client.post(
            f"/api/sessions/{self.sid}/submit",
            json={"experimentId": 1, "studentName": "Dana"},
        )
        self.assertEqual(submitted.status_code, 200)
        submission = self.client.get(f"/api/submissions/{submitted.json()['id']}").json()
        self.assertEqual(
            sorted(submission["evaluation"]),
            ["Conclusion quality", "Data analysis", "Observation accuracy"],
        )
        self.assertIn("H2O2", submission["simulatedResults"]["reactionEquation"])

    def test_unrecognized_mix(self):
        self.toggle("Sodium Thiosulfate")
        self.toggle("Ammonia")
        response = self.client.post(f"/api/sessions/{self.sid}/mix")
        self.assertEqual(response.status_code, 422)
        state = self.client.get(f"/api/sessions/{self.sid}").json()
        self.assertEqual(state["flaskStage"], "empty")
        self.assertEqual(state["selectedChemicals"], [])

    def test_submit_before_mix(self):
        self.toggle("Ammonia")
        response = self.client.post(
            f"/api/sessions/{self.sid}/submit",
            json={"experimentId": 1, "studentName": "Eli"},
        )
        self.assertEqual(response.status_code, 422)

    def test_submit_without_name(self):
        self.toggle("Copper Sulfate")
        self.toggle("Ammonia")
        self.client.post(f"/api/sessions/{self.sid}/mix")
        response = self.client.post(
            f"/api/sessions/{self.sid}/submit", json={"experimentId": 1}
        )
        self.assertEqual(response.status_code, 422)

    def test_third_chemical(self):
        self.toggle("Ammonia")
        self.toggle("Copper Sulfate")
        self.assertEqual(self.toggle("Sodium Chloride").status_code, 422)

    def test_temperature(self):
        ok = self.client.put(f"/api/sessions/{self.sid}/temperature", json={"temperature": 45})
        self.assertEqual(ok.json()["temperature"], 45.0)
        bad = self.client.put(f"/api/sessions/{self.sid}/temperature", json={"temperature": 80})
        self.assertEqual(bad.status_code, 422)

    def test_close_session(self):
        self.assertEqual(self.client.delete(f"/api/sessions/{self.sid}").json(), {"closed": True})
        self.assertEqual(self.client.get(f"/api/sessions/{self.sid}").status_code, 404)


class TestSessionLimits(unittest.TestCase):
    def test_least_recently_used_session_evicted(self):
        client = make_client(seed=False, max_sessions=3)
        sids = [client.post("/api/sessions").json()["sessionId"] for _ in range(3)]
        client.get(f"/api/sessions/{sids[0]}")

        newest = client.post("/api/sessions").json()["sessionId"]

        self.assertEqual(len(client.app.state.sessions), 3)
        self.assertEqual(client.get(f"/api/sessions/{sids[1]}").status_code, 404)
        for sid in (sids[0], sids[2], newest):
            self.assertEqual(client.get(f"/api/sessions/{sid}").status_code, 200)

    def test_abandoned_sessions_do_not_accumulate(self):
        client = make_client(seed=False, max_sessions=10)
        for _ in range(50):
            client.post("/api/sessions")
        self.assertEqual(len(client.app.state.sessions), 10)


class TestRouteKinds(unittest.TestCase):
    def test_database_routes_run_in_threadpool(self):
        app = make_client(seed=False).app
        endpoints = {
            (route.path, method): route.endpoint
            for route in app.routes
            if isinstance(route, APIRoute)
            for method in route.methods
        }
        for key in [
            ("/api/experiments", "GET"),
            ("/api/experiments", "POST"),
            ("/api/experiments/{experiment_id}", "PUT"),
            ("/api/experiments/{experiment_id}", "DELETE"),
            ("/api/experiments/{experiment_id}/submissions", "GET"),
            ("/api/submissions", "POST"),
            ("/api/submissions/{submission_id}", "GET"),
            ("/api/submissions/{submission_id}", "PUT"),
        ]:
            self.assertFalse(inspect.iscoroutinefunction(endpoints[key]), key)


class TestWebsocket(unittest.TestCase):
    def test_connect_and_disconnect(self):
        client = make_client(seed=False)
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("hello")


if __name__ == '__main__':
    unittest.main()
