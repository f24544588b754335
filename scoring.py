"""Pure scoring rules: note score, user reputation, quiz grading and statistics."""
import math
from dataclasses import dataclass, field
from typing import List, Sequence

from constants import REPUTATION_WEIGHTS


class InvalidAnswer(ValueError):
    pass


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; scores round .5 up
    return int(math.floor(value + 0.5))


def note_score(upvotes: int = 0, downvotes: int = 0, saves: int = 0, comment_count: int = 0) -> int:
    return (
        upvotes * REPUTATION_WEIGHTS["upvote"]
        + saves * REPUTATION_WEIGHTS["save"]
        + comment_count * REPUTATION_WEIGHTS["comment"]
        + downvotes * REPUTATION_WEIGHTS["downvote"]
    )


def reputation(
    note_upvotes_received: int = 0,
    note_downvotes_received: int = 0,
    note_saves_received: int = 0,
    comments_count: int = 0,
    quiz_correct_answers: int = 0,
) -> int:
    return (
        note_upvotes_received * REPUTATION_WEIGHTS["upvote"]
        + note_saves_received * REPUTATION_WEIGHTS["save"]
        + comments_count * REPUTATION_WEIGHTS["comment"]
        + note_downvotes_received * REPUTATION_WEIGHTS["downvote"]
        + quiz_correct_answers * REPUTATION_WEIGHTS["quiz_correct"]
    )


@dataclass
class GradedAnswer:
    question_id: str
    selected_option_index: int
    is_correct: bool
    points_earned: int


@dataclass
class GradeResult:
    answers: List[GradedAnswer] = field(default_factory=list)
    points_earned: int = 0
    total_points: int = 0
    correct_answers: int = 0
    total_questions: int = 0
    score: int = 0
    is_passed: bool = False


def grade(questions: Sequence, answers: Sequence[dict], passing_score: int) -> GradeResult:
    """Grade submitted answers against a quiz's questions.

    ``questions`` are objects exposing ``question_id``, ``options`` (each with
    ``is_correct``) and ``points``. ``answers`` are dicts with ``question_id``
    and ``selected_option_index``. Raises InvalidAnswer on any mismatch.
    """
    if len(answers) != len(questions):
        raise InvalidAnswer("All questions must be answered")

    by_id = {str(question.question_id): question for question in questions}
    result = GradeResult(
        total_points=sum(question.points for question in questions),
        total_questions=len(questions),
    )

    seen = set()
    for answer in answers:
        question_id = str(answer["question_id"])
        question = by_id.get(question_id)
        if question is None:
            raise InvalidAnswer(f"Invalid question ID: {question_id}")
        if question_id in seen:
            raise InvalidAnswer(f"Duplicate answer for question: {question_id}")
        seen.add(question_id)

        index = answer["selected_option_index"]
        if index < 0 or index >= len(question.options):
            raise InvalidAnswer(f"Invalid option index for question: {question_id}")

        is_correct = bool(question.options[index].is_correct)
        earned = question.points if is_correct else 0
        result.answers.append(GradedAnswer(question_id, index, is_correct, earned))
        result.points_earned += earned
        if is_correct:
            result.correct_answers += 1

    if result.total_points > 0:
        result.score = round_half_up(result.points_earned / result.total_points * 100)
    result.is_passed = result.score >= passing_score
    return result


@dataclass
class QuizStatistics:
    attempts_count: int = 0
    average_score: int = 0
    pass_rate: int = 0


def quiz_statistics(attempts: Sequence, score_of=None, passed_of=None) -> QuizStatistics:
    """Recompute quiz statistics from every attempt; zeros when there are none."""
    score_of = score_of or (lambda attempt: attempt.score)
    passed_of = passed_of or (lambda attempt: attempt.is_passed)

    count = len(attempts)
    if count == 0:
        return QuizStatistics()

    total_score = sum(score_of(attempt) for attempt in attempts)
    passed = sum(1 for attempt in attempts if passed_of(attempt))
    return QuizStatistics(
        attempts_count=count,
        average_score=round_half_up(total_score / count),
        pass_rate=round_half_up(passed / count * 100),
    )


def accuracy(correct: int, answered: int) -> int:
    if not answered:
        return 0
    return round_half_up(correct / answered * 100)
