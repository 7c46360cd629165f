"""
AI Interviewer Prompt Templates

Contains the prompt for generating a technology-stack question set.
The mix of question types is fixed so every candidate of a company
session sees the same shape of interview.
"""

import random


class InterviewerPrompts:
    """
    Prompt templates for the AI interviewer.

    Key principles:
    - Questions relevant to the technology stack
    - A fixed mix of technical, behavioral, problem-solving and design questions
    - Variety between calls for the same stack
    """

    SYSTEM_CONTEXT = """You are an experienced interviewer preparing a professional interview.

Your role:
- Write clear, focused questions a candidate can answer out loud
- Ask one thing per question
- Keep questions appropriate for a professional interview
"""

    # Questions of each type per 12-question set
    TYPE_MIX: dict[str, int] = {
        "technical": 4,
        "behavioral": 4,
        "problem-solving": 2,
        "system-design": 2,
    }

    def _type_counts(self, count: int) -> dict[str, int]:
        counts = {t: count * weight // 12 for t, weight in self.TYPE_MIX.items()}
        # Hand any rounding remainder to the technical questions
        counts["technical"] += count - sum(counts.values())
        return counts

    def generate_questions_prompt(self, technology_stack: str, count: int = 12) -> str:
        """Generate prompt for a full question set."""

        counts = self._type_counts(count)
        randomizer = random.randint(0, 999999)

        prompt = f"""{self.SYSTEM_CONTEXT}

Generate {count} interview questions for a {technology_stack} position.
The questions should be a mix of different types:
- {counts["technical"]} technical questions (specific to {technology_stack})
- {counts["behavioral"]} behavioral questions (soft skills, teamwork, problem-solving)
- {counts["problem-solving"]} problem-solving questions (algorithmic thinking, debugging)
- {counts["system-design"]} system design questions (architecture, scalability)

For each question, provide:
- type: "technical", "behavioral", "problem-solving", or "system-design"
- question: the actual question text

IMPORTANT: Output ONLY a valid JSON array, no preamble text. Start directly with [

[
    {{
        "type": "technical",
        "question": "What is the difference between REST and GraphQL APIs?"
    }}
]

Make sure the questions are relevant to {technology_stack}.
Each call should produce a different set of questions, even for the same stack. Randomizer: {randomizer}"""

        return prompt
