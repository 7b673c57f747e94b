"""
Deterministic grading that never needs the AI service.

Objective questions (multiple choice, true/false) are always graded here.
Short answers are graded here when the AI grader is disabled, fails, times
out or returns something we can't parse.
"""
import math
from typing import Optional, Set

from lms.domain.models.db_models import Grading, GradedBy, Question, QuestionType
from lms_utils.logger_utils import logger


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, not 2)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def normalize_text(text: Optional[str]) -> str:
    return " ".join((text or "").lower().split())


def word_set(text: Optional[str]) -> Set[str]:
    return set(normalize_text(text).split())


def jaccard_similarity(text_a: Optional[str], text_b: Optional[str]) -> float:
    """|A ∩ B| / |A ∪ B| over lower-cased word sets; 0.0 when both are empty."""
    words_a = word_set(text_a)
    words_b = word_set(text_b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def grade_short_answer(reference_answer: Optional[str], student_answer: Optional[str]) -> Grading:
    if normalize_text(student_answer) == normalize_text(reference_answer):
        return Grading(
            score=100,
            feedback="Perfect answer!",
            strengths="Excellent understanding of the concept.",
            improvements="Keep up the great work!",
        )

    score = round_half_up(jaccard_similarity(reference_answer, student_answer) * 100)

    if score >= 80:
        feedback = "Great answer! You covered most of the key points."
        strengths = "Good understanding of the main concepts."
        improvements = "Consider adding more specific details."
    elif score >= 60:
        feedback = "Good attempt! Consider including more key concepts."
        strengths = "You're on the right track."
        improvements = "Review the lesson material for more details."
    elif score >= 40:
        feedback = "You're on the right track. Review the material and try again."
        strengths = "You attempted to answer the question."
        improvements = "Please review the lesson material thoroughly."
    else:
        feedback = "Please review the lesson material and try again."
        strengths = "You submitted an answer." if normalize_text(student_answer) else ""
        improvements = "Study the lesson content and try again."

    return Grading(score=score, feedback=feedback, strengths=strengths, improvements=improvements)


def _grade_multiple_choice(question: Question, student_answer: str) -> Grading:
    if student_answer == question.correct_option:
        return Grading(
            score=100,
            feedback="Correct! Great job!",
            strengths="You selected the right answer!",
            improvements="Keep up the excellent work!",
        )
    correct_text = question.option_text(question.correct_option)
    return Grading(
        score=0,
        feedback=f"Incorrect. The correct answer is: {question.correct_option}. {correct_text}",
        strengths="You attempted the question." if student_answer else "",
        improvements="Review the lesson material and try again.",
    )


def _grade_true_false(question: Question, student_answer: str) -> Grading:
    if student_answer.strip().lower() == str(question.correct_answer).strip().lower():
        return Grading(
            score=100,
            feedback="Correct! Well done!",
            strengths="You understood the concept correctly!",
            improvements="Excellent understanding!",
        )
    return Grading(
        score=0,
        feedback=f"Incorrect. The correct answer is: {question.correct_answer}",
        strengths="You made an attempt." if student_answer else "",
        improvements="Please review the lesson content.",
    )


def grade_objective(question: Question, student_answer: Optional[str]) -> Grading:
    """
    Grade one answer locally.

    Despite the name this handles every question type: short answers go
    through the word-overlap heuristic, which is how the AI grader's
    fallback path reaches it.
    """
    answer = student_answer if student_answer is not None else ""

    if question.type == QuestionType.MULTIPLE_CHOICE:
        grading = _grade_multiple_choice(question, answer)
    elif question.type == QuestionType.TRUE_FALSE:
        grading = _grade_true_false(question, answer)
    else:
        grading = grade_short_answer(question.reference_answer, answer)

    logger.debug(
        "fallback_grader.graded",
        extra={"question_id": question.id, "type": question.type.value, "score": grading.score},
    )
    return grading.model_copy(update={"graded_by": GradedBy.LOCAL})
