"""
AI Evaluator Prompt Templates

Contains the prompt for scoring a single candidate answer on a 0-100 scale
with short, constructive feedback.
"""


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of answers.

    Key principles:
    - One overall score per answer
    - Feedback the candidate can act on
    """

    SYSTEM_CONTEXT = """You are an expert interviewer evaluating a candidate's answer.

Be fair but thorough in your evaluation. Consider the question type and
technology stack context.
"""

    SCORING_CRITERIA = """
=== SCORING CRITERIA (0-100 scale) ===
- Technical accuracy (for technical questions)
- Relevance and completeness
- Communication clarity
- Problem-solving approach
- Professional experience demonstrated
"""

    def evaluate_answer_prompt(
        self,
        question: str,
        answer: str,
        question_type: str,
        technology_stack: str,
    ) -> str:
        """Generate prompt for evaluating an answer."""

        prompt = f"""{self.SYSTEM_CONTEXT}

{self.SCORING_CRITERIA}

=== CONTEXT ===
Position: {technology_stack}
Question Type: {question_type}

=== QUESTION ASKED ===
{question}

=== CANDIDATE'S ANSWER ===
"{answer}"

=== YOUR TASK ===
1. Score the answer from 0-100 using the criteria above.
2. Write constructive feedback (2-3 sentences): what was good, what was
   missing, and one specific suggestion.

IMPORTANT: Output ONLY valid JSON, no preamble text. Start directly with {{

{{
    "score": <0-100>,
    "feedback": "Good understanding of the concept. Could provide more specific examples and implementation details."
}}"""

        return prompt
