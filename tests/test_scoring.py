from types import SimpleNamespace

import pytest

import scoring


def make_question(question_id, correct_index, option_count=4, points=1):
    options = [SimpleNamespace(is_correct=index == correct_index) for index in range(option_count)]
    return SimpleNamespace(question_id=question_id, options=options, points=points)


def test_note_score_weights():
    assert scoring.note_score(upvotes=3, downvotes=1, saves=2, comment_count=4) == 3 * 2 + 2 + 4 - 1
    assert scoring.note_score() == 0


def test_reputation_adds_quiz_correct_answers():
    assert scoring.reputation(
        note_upvotes_received=5,
        note_downvotes_received=2,
        note_saves_received=3,
        comments_count=4,
        quiz_correct_answers=7,
    ) == 10 + 3 + 4 - 2 + 7


def test_round_half_up():
    assert scoring.round_half_up(66.5) == 67
    assert scoring.round_half_up(66.49) == 66
    assert scoring.round_half_up(2.5) == 3


def test_grade_weighted_points():
    questions = [make_question("q1", 0, points=1), make_question("q2", 1, points=3)]
    answers = [
        {"question_id": "q1", "selected_option_index": 2},
        {"question_id": "q2", "selected_option_index": 1},
    ]
    result = scoring.grade(questions, answers, passing_score=70)

    assert result.points_earned == 3
    assert result.total_points == 4
    assert result.correct_answers == 1
    assert result.total_questions == 2
    assert result.score == 75
    assert result.is_passed is True
    assert [answer.is_correct for answer in result.answers] == [False, True]


def test_grade_two_of_three_rounds_to_67():
    questions = [make_question(f"q{index}", 0) for index in range(3)]
    answers = [
        {"question_id": "q0", "selected_option_index": 0},
        {"question_id": "q1", "selected_option_index": 0},
        {"question_id": "q2", "selected_option_index": 1},
    ]
    result = scoring.grade(questions, answers, passing_score=70)

    assert result.score == 67
    assert result.is_passed is False


def test_grade_passing_score_is_inclusive():
    questions = [make_question("q1", 0), make_question("q2", 0)]
    answers = [
        {"question_id": "q1", "selected_option_index": 0},
        {"question_id": "q2", "selected_option_index": 3},
    ]
    assert scoring.grade(questions, answers, passing_score=50).is_passed is True


@pytest.mark.parametrize(
    "answers, message",
    [
        ([{"question_id": "q1", "selected_option_index": 0}], "All questions must be answered"),
        (
            [
                {"question_id": "q1", "selected_option_index": 0},
                {"question_id": "nope", "selected_option_index": 0},
            ],
            "Invalid question ID: nope",
        ),
        (
            [
                {"question_id": "q1", "selected_option_index": 0},
                {"question_id": "q1", "selected_option_index": 1},
            ],
            "Duplicate answer for question: q1",
        ),
        (
            [
                {"question_id": "q1", "selected_option_index": 0},
                {"question_id": "q2", "selected_option_index": 4},
            ],
            "Invalid option index for question: q2",
        ),
    ],
)
def test_grade_rejects_bad_submissions(answers, message):
    questions = [make_question("q1", 0), make_question("q2", 0)]
    with pytest.raises(scoring.InvalidAnswer) as excinfo:
        scoring.grade(questions, answers, passing_score=50)
    assert str(excinfo.value) == message


def test_quiz_statistics_empty():
    stats = scoring.quiz_statistics([])
    assert (stats.attempts_count, stats.average_score, stats.pass_rate) == (0, 0, 0)


def test_quiz_statistics_rounds_mean_and_pass_rate():
    attempts = [
        SimpleNamespace(score=100, is_passed=True),
        SimpleNamespace(score=67, is_passed=False),
        SimpleNamespace(score=50, is_passed=False),
    ]
    stats = scoring.quiz_statistics(attempts)

    assert stats.attempts_count == 3
    assert stats.average_score == 72
    assert stats.pass_rate == 33


def test_accuracy():
    assert scoring.accuracy(0, 0) == 0
    assert scoring.accuracy(2, 3) == 67
