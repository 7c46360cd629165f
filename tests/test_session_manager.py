"""
Tests for the interview session manager, company sessions and candidate
selection.
"""

import pytest

from conftest import FakeEvaluator, FakeQuestionSource, FakeSynthesizer
from hyrily.config.settings import Settings
from hyrily.core.candidate_ranking import rank_candidates, select_top_candidates
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.core.session_store import InMemorySessionRepository
from hyrily.models.company import Candidate, CandidateStatus, CompanySession, CompanySessionStatus
from hyrily.models.evaluation import ScoreScale
from hyrily.models.interview import InterviewPhase, TimingPolicy


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def make_manager(repository, questions):
    """Factory for a manager wired to fakes, with manual ticking."""

    def factory(scores: list[float] | None = None, source_questions=None) -> InterviewSessionManager:
        return InterviewSessionManager(
            repository=repository,
            question_source=FakeQuestionSource(questions if source_questions is None else source_questions),
            evaluator=FakeEvaluator(scores or []),
            settings=Settings(),
            synthesizer_factory=FakeSynthesizer,
            recognizer_factory=lambda: None,
            auto_tick=False,
        )

    return factory


async def run_interview(manager: InterviewSessionManager, session_id: str, answers: list[str]) -> None:
    orchestrator = await manager.start_session(session_id)
    for text in answers:
        await orchestrator.submit_answer(text)


class TestInterviewSessions:

    @pytest.mark.asyncio
    async def test_create_uses_generated_questions(self, make_manager, questions) -> None:
        manager = make_manager()
        config = manager.default_config(question_time_limit_seconds=None)

        record = await manager.create_session(config, question_count=3)

        assert record.questions == questions
        assert manager.question_source.calls == [("Frontend Engineering", 3)]
        assert record.phase == InterviewPhase.IDLE
        assert manager.get_orchestrator(record.session_id).phase == InterviewPhase.IDLE

    @pytest.mark.asyncio
    async def test_default_config_ignores_unset_overrides(self, make_manager) -> None:
        manager = make_manager()

        config = manager.default_config(timing=TimingPolicy.TIMED, question_time_limit_seconds=None)

        assert config.timing == TimingPolicy.TIMED
        assert config.question_time_limit_seconds == 60

    @pytest.mark.asyncio
    async def test_practice_session_uses_fixed_questions(self, make_manager) -> None:
        manager = make_manager()

        record = await manager.create_session(manager.default_config(), practice=True)

        assert len(record.questions) == 10
        assert record.questions[0].id == "p1"
        assert manager.question_source.calls == []

    @pytest.mark.asyncio
    async def test_completed_session_is_persisted(self, make_manager, repository) -> None:
        manager = make_manager(scores=[100, 80, 60])
        record = await manager.create_session(manager.default_config(), question_count=3)

        await run_interview(manager, record.session_id, ["a", "b", "c"])

        stored = await repository.get_session(record.session_id)
        assert stored.phase == InterviewPhase.COMPLETE
        assert stored.result.aggregate_score == 4.0
        assert stored.started_at is not None
        assert stored.completed_at is not None
        with pytest.raises(ValueError):
            manager.get_orchestrator(record.session_id)

    @pytest.mark.asyncio
    async def test_cancelled_session_is_released(self, make_manager, repository) -> None:
        manager = make_manager()
        record = await manager.create_session(manager.default_config(), question_count=3)
        await manager.start_session(record.session_id)

        await manager.end_session(record.session_id)

        stored = await repository.get_session(record.session_id)
        assert stored.phase == InterviewPhase.CANCELLED
        assert stored.result is None
        with pytest.raises(ValueError):
            manager.get_orchestrator(record.session_id)

    @pytest.mark.asyncio
    async def test_audio_requires_a_voice_session(self, make_manager) -> None:
        manager = make_manager()
        record = await manager.create_session(manager.default_config(), question_count=3)

        with pytest.raises(ValueError):
            await manager.transcribe_audio(record.session_id, b"audio")

    @pytest.mark.asyncio
    async def test_unknown_session(self, make_manager) -> None:
        manager = make_manager()

        with pytest.raises(ValueError, match="Session not found"):
            await manager.start_session("missing")

    @pytest.mark.asyncio
    async def test_cleanup_ends_live_sessions(self, make_manager, repository) -> None:
        manager = make_manager()
        record = await manager.create_session(manager.default_config(), question_count=3)
        await manager.start_session(record.session_id)

        await manager.cleanup()

        stored = await repository.get_session(record.session_id)
        assert stored.phase == InterviewPhase.CANCELLED


class TestCompanySessions:

    @pytest.mark.asyncio
    async def test_full_round_selects_best_candidate(self, make_manager) -> None:
        manager = make_manager(scores=[90, 80, 70, 50, 50, 50])
        company = await manager.create_company_session("Backend Engineering", candidate_count=2, positions=1)
        assert len(company.questions) == 3

        alice, alice_record = await manager.join_company_session(company.session_id, "Alice")
        bob, bob_record = await manager.join_company_session(company.session_id, "Bob")
        assert alice_record.config.score_scale == ScoreScale.HUNDRED_POINT
        assert alice_record.questions == bob_record.questions

        await run_interview(manager, alice_record.session_id, ["a1", "a2", "a3"])
        company = await manager.get_company_session(company.session_id)
        assert company.get_candidate(alice.id).status == CandidateStatus.COMPLETED
        assert company.status == CompanySessionStatus.ACTIVE

        await run_interview(manager, bob_record.session_id, ["b1", "b2", "b3"])
        company = await manager.get_company_session(company.session_id)

        assert company.status == CompanySessionStatus.COMPLETED
        assert company.selected_candidate_ids == [alice.id]
        assert company.get_candidate(alice.id).status == CandidateStatus.SELECTED
        assert company.get_candidate(alice.id).score == 80.0
        assert company.get_candidate(bob.id).status == CandidateStatus.REJECTED
        assert company.get_candidate(bob.id).score == 50.0

        ranking = await manager.get_ranking(company.session_id)
        assert [c.name for c in ranking] == ["Alice", "Bob"]

    @pytest.mark.asyncio
    async def test_start_marks_candidate_interviewing(self, make_manager) -> None:
        manager = make_manager()
        company = await manager.create_company_session("Backend", candidate_count=1)
        candidate, record = await manager.join_company_session(company.session_id, "Carol")

        await manager.start_session(record.session_id)

        company = await manager.get_company_session(company.session_id)
        assert company.get_candidate(candidate.id).status == CandidateStatus.INTERVIEWING
        assert company.get_candidate(candidate.id).interview_session_id == record.session_id

    @pytest.mark.asyncio
    async def test_abandoned_interview_scores_zero(self, make_manager) -> None:
        manager = make_manager()
        company = await manager.create_company_session("Backend", candidate_count=1)
        candidate, record = await manager.join_company_session(company.session_id, "Dan")
        await manager.start_session(record.session_id)

        await manager.end_session(record.session_id)

        company = await manager.get_company_session(company.session_id)
        assert company.status == CompanySessionStatus.COMPLETED
        assert company.get_candidate(candidate.id).score == 0.0
        assert company.get_candidate(candidate.id).status == CandidateStatus.SELECTED

    @pytest.mark.asyncio
    async def test_join_full_session_fails(self, make_manager) -> None:
        manager = make_manager()
        company = await manager.create_company_session("Backend", candidate_count=1)
        await manager.join_company_session(company.session_id, "Erin")

        with pytest.raises(ValueError, match="full"):
            await manager.join_company_session(company.session_id, "Frank")

    @pytest.mark.asyncio
    async def test_more_positions_than_candidates_fails(self, make_manager) -> None:
        manager = make_manager()

        with pytest.raises(ValueError):
            await manager.create_company_session("Backend", candidate_count=1, positions=2)

    @pytest.mark.asyncio
    async def test_fallback_questions_when_generation_returns_nothing(self, make_manager) -> None:
        manager = make_manager(source_questions=[])

        company = await manager.create_company_session("Backend", candidate_count=1)

        assert len(company.questions) == 12

    @pytest.mark.asyncio
    async def test_delete_removes_candidate_interviews(self, make_manager, repository) -> None:
        manager = make_manager()
        company = await manager.create_company_session("Backend", candidate_count=2)
        _, record = await manager.join_company_session(company.session_id, "Gina")
        await manager.start_session(record.session_id)

        await manager.delete_company_session(company.session_id)

        assert await repository.get_company_session(company.session_id) is None
        assert await repository.get_session(record.session_id) is None
        with pytest.raises(ValueError):
            await manager.get_company_session(company.session_id)


class TestCandidateSelection:

    def _session(self, scores: list[float], positions: int = 1) -> CompanySession:
        return CompanySession(
            technology_stack="Backend",
            candidate_count=len(scores),
            positions=positions,
            candidates=[
                Candidate(name=f"c{i}", score=score, status=CandidateStatus.COMPLETED)
                for i, score in enumerate(scores)
            ],
        )

    def test_rank_orders_by_score(self) -> None:
        session = self._session([40, 90, 65])

        assert [c.name for c in rank_candidates(session.candidates)] == ["c1", "c2", "c0"]

    def test_ties_keep_join_order(self) -> None:
        session = self._session([70, 70])

        assert [c.name for c in rank_candidates(session.candidates)] == ["c0", "c1"]

    def test_selects_top_positions(self) -> None:
        session = self._session([40, 90, 65], positions=2)

        selected = select_top_candidates(session)

        assert [c.name for c in selected] == ["c1", "c2"]
        assert session.candidates[0].status == CandidateStatus.REJECTED
        assert session.status == CompanySessionStatus.COMPLETED
        assert session.completed_at is not None

    def test_unfinished_interviews_block_selection(self) -> None:
        session = self._session([40, 90])
        session.candidates[0].status = CandidateStatus.INTERVIEWING

        with pytest.raises(ValueError):
            select_top_candidates(session)
