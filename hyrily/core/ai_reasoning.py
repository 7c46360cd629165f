"""
AI Reasoning Layer for Hyrily

Handles all AI-powered operations:
- Question set generation for a technology stack
- Answer evaluation (0-100 score plus feedback)

Uses the Gemini generateContent REST API. Failures are raised as
AIServiceError; callers own the fallbacks (static questions, neutral score).
"""

import json
import logging

import httpx

from hyrily.config.settings import Settings, get_settings
from hyrily.models.evaluation import Evaluation, ScoreScale
from hyrily.models.question import Question, QuestionType
from hyrily.prompts.evaluator import EvaluatorPrompts
from hyrily.prompts.interviewer import InterviewerPrompts

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Raised when the model cannot be reached or returns unusable output."""
    pass


class AIReasoningLayer:
    """
    Central AI reasoning component using Gemini.

    Acts as both the question source and the answer evaluator of an
    interview. A single HTTP client is shared by all calls.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize AI reasoning layer with Gemini configuration.

        Args:
            settings: Application settings (defaults to the cached settings)
            transport: Optional httpx transport, used to stub the API
        """
        self.settings = settings or get_settings()
        self.model = self.settings.gemini_model

        # HTTP client for API calls
        self.client = httpx.AsyncClient(
            base_url=self.settings.gemini_base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=self.settings.gemini_timeout_seconds,
            transport=transport,
        )

        # Prompt templates
        self.interviewer_prompts = InterviewerPrompts()
        self.evaluator_prompts = EvaluatorPrompts()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from a generateContent response."""
        candidates = result.get("candidates") or []
        if not candidates:
            raise AIServiceError("Gemini returned no candidates")

        parts = candidates[0].get("content", {}).get("parts", [])
        text_parts = [part["text"] for part in parts if isinstance(part, dict) and "text" in part]
        content = "".join(text_parts)

        if not content.strip():
            raise AIServiceError("Gemini returned an empty response")
        return content

    async def _call_gemini(
        self,
        prompt: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> str:
        """
        Call Gemini with a single user prompt.

        Args:
            prompt: The prompt to send
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            Model response text

        Raises:
            AIServiceError: On HTTP failure or an empty response
        """
        try:
            payload = {
                "contents": [
                    {"role": "user", "parts": [{"text": prompt}]}
                ],
                "generationConfig": {
                    "maxOutputTokens": max_tokens,
                    "temperature": temperature,
                },
            }

            response = await self.client.post(
                f"/models/{self.model}:generateContent",
                params={"key": self.settings.gemini_api_key},
                json=payload,
            )
            response.raise_for_status()

            result = response.json()
            return self._extract_content(result)

        except httpx.HTTPError as e:
            logger.error(f"Gemini API error: {e}")
            raise AIServiceError(f"Gemini API error: {e}") from e
        except ValueError as e:
            logger.error(f"Gemini returned invalid JSON: {e}")
            raise AIServiceError(f"Gemini returned invalid JSON: {e}") from e

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def generate_questions(self, technology_stack: str, count: int = 12) -> list[Question]:
        """
        Generate a full question set for a technology stack.

        Args:
            technology_stack: Position being interviewed for
            count: Number of questions

        Returns:
            Questions with ids q1..qN in model order
        """
        prompt = self.interviewer_prompts.generate_questions_prompt(technology_stack, count)
        response = await self._call_gemini(prompt, max_tokens=2048, temperature=0.9)

        questions = self._parse_questions_response(response)
        logger.info(f"Generated {len(questions)} questions for {technology_stack}")
        return questions[:count]

    def _parse_questions_response(self, response: str) -> list[Question]:
        """Parse AI response into questions."""
        json_start = response.find("[")
        json_end = response.rfind("]") + 1
        if json_start < 0 or json_end <= json_start:
            raise AIServiceError("Invalid response format from Gemini")

        try:
            data = json.loads(response[json_start:json_end])
        except json.JSONDecodeError as e:
            raise AIServiceError(f"Failed to parse questions JSON: {e}") from e

        questions = []
        for item in data:
            if not isinstance(item, dict):
                continue
            text = str(item.get("question", "")).strip()
            if not text:
                continue
            try:
                question_type = QuestionType(item.get("type", "technical"))
            except ValueError:
                question_type = QuestionType.TECHNICAL
            questions.append(
                Question(id=f"q{len(questions) + 1}", type=question_type, text=text)
            )

        if not questions:
            raise AIServiceError("Gemini returned no usable questions")
        return questions

    # =========================================================================
    # EVALUATION
    # =========================================================================

    async def evaluate_answer(
        self,
        question: str,
        answer: str,
        question_type: QuestionType | str,
        technology_stack: str,
    ) -> Evaluation:
        """
        Evaluate a candidate's answer to a question.

        Args:
            question: The question that was asked
            answer: The candidate's answer text
            question_type: Type of the question
            technology_stack: Position being interviewed for

        Returns:
            Evaluation on the 0-100 scale
        """
        prompt = self.evaluator_prompts.evaluate_answer_prompt(
            question=question,
            answer=answer,
            question_type=QuestionType(question_type).value,
            technology_stack=technology_stack,
        )

        response = await self._call_gemini(prompt, max_tokens=1024, temperature=0.3)
        evaluation = self._parse_evaluation_response(response)

        logger.info(f"Evaluation complete: score={evaluation.score:.1f}")
        return evaluation

    def _parse_evaluation_response(self, response: str) -> Evaluation:
        """Parse AI response into an Evaluation."""
        json_start = response.find("{")
        json_end = response.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            raise AIServiceError("Invalid response format from Gemini")

        try:
            data = json.loads(response[json_start:json_end])
            score = float(data["score"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise AIServiceError(f"Failed to parse evaluation JSON: {e}") from e

        return Evaluation(
            score=min(100.0, max(0.0, score)),
            feedback=str(data.get("feedback", "")),
            scale=ScoreScale.HUNDRED_POINT,
        )
