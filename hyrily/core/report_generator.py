"""
Report Generator for Hyrily

Generates the post-interview report with:
- Aggregate score and interpretation
- Answered and skipped counts
- Strengths and improvement areas
- Per-question feedback
"""

import logging
from datetime import datetime

from hyrily.models.interview import Answer, AnswerStatus, InterviewSessionRecord
from hyrily.models.question import Question
from hyrily.models.report import InterviewReport, QuestionFeedback

logger = logging.getLogger(__name__)


# Share of the scale that marks an answer as a strength / weakness
STRENGTH_THRESHOLD = 0.8
IMPROVEMENT_THRESHOLD = 0.5


class ReportGenerator:
    """
    Generates interview reports from completed session records.
    """

    async def generate(self, record: InterviewSessionRecord) -> InterviewReport:
        """
        Generate complete interview report.

        Args:
            record: Completed interview session

        Returns:
            Complete InterviewReport

        Raises:
            ValueError: If the session has no completion result
        """
        result = record.result
        if result is None:
            raise ValueError(f"Interview not complete: {record.session_id}")

        max_score = result.score_scale.max_score
        percentage = round(result.aggregate_score / max_score * 100, 1)

        answers = {a.question_id: a for a in result.answers}
        pairs = [(q, answers[q.id]) for q in record.questions if q.id in answers]

        report = InterviewReport(
            session_id=record.session_id,
            generated_at=datetime.utcnow(),
            technology_stack=record.config.technology_stack,
            aggregate_score=result.aggregate_score,
            score_scale=result.score_scale,
            score_percentage=min(100.0, max(0.0, percentage)),
            score_interpretation=self._interpret_score(percentage),
            completion_reason=result.completion_reason,
            duration_seconds=result.duration_seconds,
            total_questions=len(record.questions),
            answered_count=result.answered_count,
            skipped_count=result.skipped_count,
            strengths=self._identify_strengths(pairs, max_score),
            improvements=self._identify_improvement_areas(pairs, max_score),
            question_feedback=self._generate_question_feedback(pairs),
        )

        logger.info(f"Generated report for session {record.session_id}: {percentage}%")
        return report

    def _identify_strengths(self, pairs: list[tuple[Question, Answer]], max_score: float) -> list[str]:
        """Answers scoring at least 80% of the scale."""
        strengths = []
        for question, answer in pairs:
            if answer.status == AnswerStatus.ANSWERED and answer.score >= max_score * STRENGTH_THRESHOLD:
                strengths.append(f"Strong answer on {self._topic(question)}")

        unique_strengths = list(dict.fromkeys(strengths))
        return unique_strengths[:5]

    def _identify_improvement_areas(self, pairs: list[tuple[Question, Answer]], max_score: float) -> list[str]:
        """Skipped answers and answers below half of the scale."""
        areas = []
        for question, answer in pairs:
            if answer.status == AnswerStatus.SKIPPED:
                areas.append(f"Practice answering {self._topic(question)} within the time limit")
            elif answer.score < max_score * IMPROVEMENT_THRESHOLD:
                areas.append(f"Strengthen {self._topic(question)}")

        unique_areas = list(dict.fromkeys(areas))
        return unique_areas[:5]

    def _generate_question_feedback(self, pairs: list[tuple[Question, Answer]]) -> list[QuestionFeedback]:
        return [
            QuestionFeedback(
                question_number=i + 1,
                question_id=question.id,
                question_text=question.text,
                question_type=question.type.value,
                category=question.category,
                answer_text=answer.text,
                status=answer.status,
                score=answer.score,
                feedback=answer.feedback,
            )
            for i, (question, answer) in enumerate(pairs)
        ]

    def _topic(self, question: Question) -> str:
        if question.category:
            return question.category
        return f"{question.type.value.replace('-', ' ')} questions"

    def _interpret_score(self, percentage: float) -> str:
        """Interpret overall score as a percentage of the scale."""
        if percentage >= 90:
            return "Exceptional performance - ready for the role"
        elif percentage >= 80:
            return "Strong performance - well prepared"
        elif percentage >= 70:
            return "Good performance - ready with minor improvements"
        elif percentage >= 60:
            return "Adequate performance - some areas need strengthening"
        elif percentage >= 50:
            return "Below expectations - focused practice recommended"
        else:
            return "Needs significant improvement before interview readiness"
