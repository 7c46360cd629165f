"""
Tests for the HTTP and WebSocket API.

The session manager dependency is overridden with one wired to fakes.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import FakeEvaluator, FakeQuestionSource, FakeSynthesizer
from hyrily.api.dependencies import get_session_manager
from hyrily.config.settings import Settings
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.core.session_store import InMemorySessionRepository
from main import app


@pytest.fixture
def manager(questions) -> InterviewSessionManager:
    return InterviewSessionManager(
        repository=InMemorySessionRepository(),
        question_source=FakeQuestionSource(questions),
        evaluator=FakeEvaluator([80] * 20),
        settings=Settings(),
        synthesizer_factory=FakeSynthesizer,
        recognizer_factory=lambda: None,
        auto_tick=False,
    )


@pytest.fixture
def client(manager):
    app.dependency_overrides[get_session_manager] = lambda: manager
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_session(client: TestClient, **overrides) -> str:
    body = {"question_count": 3, **overrides}
    response = client.post("/api/interview/setup", json=body)
    assert response.status_code == 200
    return response.json()["session_id"]


class TestHealth:

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestInterviewEndpoints:

    def test_full_typed_interview(self, client: TestClient) -> None:
        session_id = create_session(client)

        response = client.post(f"/api/interview/{session_id}/start")
        assert response.status_code == 200
        started = response.json()
        assert started["phase"] == "awaiting_response"
        assert started["question"]["question_id"] == "q1"
        assert started["question"]["total_questions"] == 3
        assert started["voice_available"] is False

        first = client.post(f"/api/interview/{session_id}/respond", json={"answer": "Diffing"}).json()
        assert first["action"] == "question"
        assert first["answer"]["score"] == 4.0
        assert first["next_question"]["question_number"] == 2

        skipped = client.post(f"/api/interview/{session_id}/skip").json()
        assert skipped["answer"]["status"] == "skipped"

        last = client.post(f"/api/interview/{session_id}/respond", json={"answer": "Hash ids"}).json()
        assert last["action"] == "complete"
        assert last["phase"] == "complete"
        assert last["result"]["aggregate_score"] == pytest.approx(2.67)
        assert len(last["result"]["answers"]) == 3

        status = client.get(f"/api/interview/{session_id}/status").json()
        assert status["phase"] == "complete"
        assert status["answered_count"] == 3

        report = client.get(f"/api/interview/{session_id}/report").json()
        assert report["skipped_count"] == 1
        assert report["answered_count"] == 2

    def test_practice_setup(self, client: TestClient) -> None:
        response = client.post("/api/interview/setup", json={"practice": True})

        assert response.json()["total_questions"] == 10

    def test_invalid_setup_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/interview/setup", json={"timing": "sometimes"})

        assert response.status_code == 422

    def test_start_twice(self, client: TestClient) -> None:
        session_id = create_session(client)
        client.post(f"/api/interview/{session_id}/start")

        response = client.post(f"/api/interview/{session_id}/start")

        assert response.status_code == 400

    def test_unknown_session(self, client: TestClient) -> None:
        assert client.post("/api/interview/missing/start").status_code == 404
        assert client.post("/api/interview/missing/respond", json={"answer": "x"}).status_code == 404
        assert client.get("/api/interview/missing/status").status_code == 404
        assert client.get("/api/interview/missing/report").status_code == 404

    def test_respond_before_start(self, client: TestClient) -> None:
        session_id = create_session(client)

        response = client.post(f"/api/interview/{session_id}/respond", json={"answer": "early"})

        assert response.status_code == 400

    def test_empty_answer_is_ignored(self, client: TestClient) -> None:
        session_id = create_session(client)
        client.post(f"/api/interview/{session_id}/start")

        response = client.post(f"/api/interview/{session_id}/respond", json={"answer": "  "})

        assert response.json()["action"] == "ignored"
        assert response.json()["phase"] == "awaiting_response"

    def test_end_interview(self, client: TestClient) -> None:
        session_id = create_session(client)
        client.post(f"/api/interview/{session_id}/start")

        ended = client.post(f"/api/interview/{session_id}/end").json()
        again = client.post(f"/api/interview/{session_id}/end").json()

        assert ended["status"] == "ended"
        assert again["status"] == "already_ended"
        assert client.get(f"/api/interview/{session_id}/status").json()["phase"] == "cancelled"
        assert client.get(f"/api/interview/{session_id}/report").status_code == 400

    def test_status_while_running(self, client: TestClient) -> None:
        session_id = create_session(client, timing="timed", question_time_limit_seconds=30)
        client.post(f"/api/interview/{session_id}/start")

        status = client.get(f"/api/interview/{session_id}/status").json()

        assert status["phase"] == "awaiting_response"
        assert status["question_number"] == 1
        assert status["question_time_remaining"] == 30


class TestInterviewWebSocket:

    def test_typed_interview_over_websocket(self, client: TestClient) -> None:
        session_id = create_session(client, question_count=1)

        with client.websocket_connect(f"/api/interview/ws/{session_id}") as websocket:
            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

            websocket.send_json({"type": "start"})
            messages = []
            while not messages or messages[-1].get("to") != "awaiting_response":
                messages.append(websocket.receive_json())
            question = next(m for m in messages if m["type"] == "question")
            assert question["data"]["question_id"] == "q1"

            websocket.send_json({"type": "answer", "text": "Diffing"})
            messages = []
            while not messages or messages[-1]["type"] != "complete":
                messages.append(websocket.receive_json())

            types = [m["type"] for m in messages]
            assert "answer" in types
            assert messages[-1]["data"]["aggregate_score"] == 4.0

    def test_end_over_websocket(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/api/interview/ws/{session_id}") as websocket:
            websocket.send_json({"type": "start"})
            websocket.send_json({"type": "end"})
            messages = []
            while not messages or messages[-1]["type"] != "ended":
                messages.append(websocket.receive_json())

            assert {"type": "state_change", "from": "awaiting_response", "to": "cancelled"} in messages

    def test_audio_rejected_for_typed_session(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/api/interview/ws/{session_id}") as websocket:
            websocket.send_bytes(b"RIFF")
            message = websocket.receive_json()

            assert message["type"] == "error"

    def test_rejected_message_keeps_session_open(self, client: TestClient) -> None:
        session_id = create_session(client)

        with client.websocket_connect(f"/api/interview/ws/{session_id}") as websocket:
            websocket.send_json({"type": "start"})
            messages = []
            while not messages or messages[-1].get("to") != "awaiting_response":
                messages.append(websocket.receive_json())

            websocket.send_json({"type": "start"})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_text("hello")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_text("[1, 2]")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

            websocket.send_json({"type": "answer", "text": "Diffing"})
            answer = websocket.receive_json()
            while answer["type"] != "answer":
                answer = websocket.receive_json()
            assert answer["data"]["question_id"] == "q1"

    def test_disconnect_unregisters_callbacks(self, client: TestClient, manager) -> None:
        session_id = create_session(client)
        orchestrator = manager.get_orchestrator(session_id)
        before = (
            len(orchestrator._state_change_callbacks),
            len(orchestrator._complete_callbacks),
            len(orchestrator.speech_engine._transcript_listeners),
        )

        for _ in range(2):
            with client.websocket_connect(f"/api/interview/ws/{session_id}") as websocket:
                websocket.send_json({"type": "ping"})
                assert websocket.receive_json() == {"type": "pong"}

        after = (
            len(orchestrator._state_change_callbacks),
            len(orchestrator._complete_callbacks),
            len(orchestrator.speech_engine._transcript_listeners),
        )
        assert after == before

    def test_unknown_session_closes(self, client: TestClient) -> None:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/interview/ws/missing") as websocket:
                websocket.receive_json()


class TestCompanyEndpoints:

    def test_company_round(self, client: TestClient) -> None:
        response = client.post(
            "/api/company/sessions",
            json={"technology_stack": "Backend Engineering", "candidate_count": 1},
        )
        assert response.status_code == 200
        company = response.json()
        assert len(company["questions"]) == 3

        joined = client.post(f"/api/company/sessions/{company['session_id']}/join", json={"name": "Alice"})
        assert joined.status_code == 200
        interview_id = joined.json()["interview_session_id"]
        candidate_id = joined.json()["candidate"]["id"]
        assert candidate_id.startswith("candidate-")

        full = client.post(f"/api/company/sessions/{company['session_id']}/join", json={"name": "Bob"})
        assert full.status_code == 400

        client.post(f"/api/interview/{interview_id}/start")
        for text in ["one", "two", "three"]:
            client.post(f"/api/interview/{interview_id}/respond", json={"answer": text})

        ranking = client.get(f"/api/company/sessions/{company['session_id']}/ranking").json()
        assert ranking["status"] == "completed"
        assert ranking["selected_candidate_ids"] == [candidate_id]
        assert ranking["ranking"][0]["rank"] == 1
        assert ranking["ranking"][0]["score"] == 80.0
        assert ranking["ranking"][0]["status"] == "selected"

        listed = client.get("/api/company/sessions").json()
        assert [s["session_id"] for s in listed] == [company["session_id"]]

    def test_invalid_positions(self, client: TestClient) -> None:
        response = client.post(
            "/api/company/sessions",
            json={"technology_stack": "Backend", "candidate_count": 1, "positions": 3},
        )

        assert response.status_code == 400

    def test_unknown_company_session(self, client: TestClient) -> None:
        assert client.get("/api/company/sessions/missing").status_code == 404
        assert client.post("/api/company/sessions/missing/join", json={"name": "X"}).status_code == 404
        assert client.delete("/api/company/sessions/missing").status_code == 404

    def test_delete_company_session(self, client: TestClient) -> None:
        company = client.post(
            "/api/company/sessions",
            json={"technology_stack": "Backend", "candidate_count": 2},
        ).json()

        response = client.delete(f"/api/company/sessions/{company['session_id']}")

        assert response.json()["status"] == "deleted"
        assert client.get(f"/api/company/sessions/{company['session_id']}").status_code == 404
