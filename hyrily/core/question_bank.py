"""
Question sets for Hyrily interviews.

`load_questions` wraps any question source and always returns a usable
list: if the source fails or returns nothing, the fixed fallback set is used.
"""

import logging
import random
from typing import Protocol

from hyrily.models.question import Question, QuestionType

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):
    async def generate_questions(self, technology_stack: str, count: int) -> list[Question]: ...


# Fallback used when question generation is unavailable
FALLBACK_QUESTIONS: list[Question] = [
    Question(id="q1", type=QuestionType.TECHNICAL,
             text="Explain the difference between REST and GraphQL APIs."),
    Question(id="q2", type=QuestionType.BEHAVIORAL,
             text="Describe a challenging project you worked on and how you overcame obstacles."),
    Question(id="q3", type=QuestionType.TECHNICAL,
             text="What are the key principles of SOLID design patterns?"),
    Question(id="q4", type=QuestionType.PROBLEM_SOLVING,
             text="How would you optimize a slow-performing database query?"),
    Question(id="q5", type=QuestionType.BEHAVIORAL,
             text="Tell me about a time when you had to work with a difficult team member."),
    Question(id="q6", type=QuestionType.TECHNICAL,
             text="Explain the concept of microservices and their benefits."),
    Question(id="q7", type=QuestionType.SYSTEM_DESIGN,
             text="Design a scalable chat application architecture."),
    Question(id="q8", type=QuestionType.TECHNICAL,
             text="What is the difference between synchronous and asynchronous programming?"),
    Question(id="q9", type=QuestionType.BEHAVIORAL,
             text="How do you handle tight deadlines and pressure?"),
    Question(id="q10", type=QuestionType.PROBLEM_SOLVING,
             text="How would you implement a rate limiting system?"),
    Question(id="q11", type=QuestionType.TECHNICAL,
             text="Explain the concept of dependency injection."),
    Question(id="q12", type=QuestionType.BEHAVIORAL,
             text="Describe your approach to learning new technologies."),
]


# Fixed frontend practice interview
PRACTICE_QUESTIONS: list[Question] = [
    Question(id="p1", type=QuestionType.BEHAVIORAL, category="Introduction",
             text="Hello! Welcome to your Frontend Engineering interview with Hyrily. Let's start with: "
                  "Can you tell me about yourself and your journey into frontend development?"),
    Question(id="p2", type=QuestionType.BEHAVIORAL, category="Motivation",
             text="What interests you about frontend development and why did you choose this career path?"),
    Question(id="p3", type=QuestionType.TECHNICAL, category="Technical Fundamentals",
             text="Can you explain the difference between HTML, CSS, and JavaScript and how they work "
                  "together in web development?"),
    Question(id="p4", type=QuestionType.TECHNICAL, category="React Knowledge",
             text="How does React work under the hood? Explain the virtual DOM concept."),
    Question(id="p5", type=QuestionType.TECHNICAL, category="Modern React",
             text="What are React hooks and how do they differ from class components?"),
    Question(id="p6", type=QuestionType.PROBLEM_SOLVING, category="Problem Solving",
             text="Describe a challenging frontend project you worked on. What technologies did you use "
                  "and what obstacles did you overcome?"),
    Question(id="p7", type=QuestionType.TECHNICAL, category="JavaScript",
             text="How do you handle asynchronous operations in JavaScript? Explain promises, "
                  "async/await, and callbacks."),
    Question(id="p8", type=QuestionType.TECHNICAL, category="CSS",
             text="What is your experience with modern CSS features like Grid, Flexbox, and CSS Custom Properties?"),
    Question(id="p9", type=QuestionType.TECHNICAL, category="Testing",
             text="How do you approach testing in React applications? What testing strategies and tools do you use?"),
    Question(id="p10", type=QuestionType.BEHAVIORAL, category="Career Goals",
             text="Where do you see yourself in the next five years, and how do you plan to grow "
                  "as a frontend engineer?"),
]


async def load_questions(
    source: QuestionSource | None,
    technology_stack: str,
    count: int = 12,
    shuffle: bool = False,
) -> list[Question]:
    """
    Load a question set, falling back to the static list.

    Args:
        source: Question generator (optional)
        technology_stack: Position being interviewed for
        count: Number of questions wanted
        shuffle: Randomize question order

    Returns:
        A non-empty list of questions
    """
    questions: list[Question] = []

    if source is not None:
        try:
            questions = list(await source.generate_questions(technology_stack, count))
        except Exception as e:
            logger.warning(f"Question generation failed, using fallback questions: {e}")
            questions = []

    if not questions:
        logger.info(f"Using {len(FALLBACK_QUESTIONS)} fallback questions for {technology_stack}")
        questions = list(FALLBACK_QUESTIONS[:count])

    if shuffle:
        random.shuffle(questions)

    return questions
