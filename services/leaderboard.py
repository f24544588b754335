from mongoengine.queryset.visitor import Q

import scoring
from models import QuizAttempt, User
from responses import to_json

PUBLIC_FIELDS = (
    "name",
    "role",
    "reputation_score",
    "notes_created",
    "quizzes_taken",
    "quiz_correct_answers",
    "profile_picture",
    "created_at",
)


def _ranked() -> Q:
    return Q(is_active=True, is_verified=True)


def _entry(user: User, rank: int, **extra) -> dict:
    data = {"id": str(user.id), "rank": rank}
    for field in PUBLIC_FIELDS:
        data[field] = to_json(getattr(user, field))
    data.update(extra)
    return data


def global_leaderboard(page, role=None):
    query = _ranked()
    if role:
        query &= Q(role=role)
    queryset = User.objects(query).order_by("-reputation_score", "created_at")
    users = [_entry(user, page.skip + index + 1) for index, user in enumerate(page.slice(queryset))]
    return users, queryset.count()


def top_contributors(limit: int = 10) -> list:
    queryset = (
        User.objects(_ranked() & Q(notes_created__gt=0))
        .order_by("-notes_created", "-reputation_score")
        .limit(limit)
    )
    return [_entry(user, index + 1) for index, user in enumerate(queryset)]


def quiz_champions(limit: int = 10) -> list:
    queryset = (
        User.objects(_ranked() & Q(quizzes_taken__gt=0))
        .order_by("-quiz_correct_answers", "-quizzes_taken")
        .limit(limit)
    )
    champions = []
    for index, user in enumerate(queryset):
        answered = QuizAttempt.objects(user=user.id).sum("total_questions")
        champions.append(_entry(user, index + 1, accuracy=scoring.accuracy(user.quiz_correct_answers, answered)))
    return champions


def user_position(user: User) -> dict:
    score = user.reputation_score
    higher = User.objects(_ranked() & Q(reputation_score__gt=score)).count()
    role_higher = User.objects(_ranked() & Q(role=user.role, reputation_score__gt=score)).count()
    total_users = User.objects(_ranked()).count()
    total_role_users = User.objects(_ranked() & Q(role=user.role)).count()

    global_rank = higher + 1
    if total_users > 1:
        percentile = scoring.round_half_up((total_users - global_rank) / (total_users - 1) * 100)
    else:
        percentile = 100
    return {
        "user": _entry(user, global_rank),
        "global_rank": global_rank,
        "role_rank": role_higher + 1,
        "total_users": total_users,
        "total_role_users": total_role_users,
        "percentile": max(percentile, 0),
    }


def users_nearby(user: User, radius: int = 5) -> list:
    score = user.reputation_score
    above = list(
        User.objects(_ranked() & Q(reputation_score__gte=score))
        .order_by("reputation_score", "-created_at")
        .limit(radius + 1)
    )
    below = list(
        User.objects(_ranked() & Q(reputation_score__lt=score))
        .order_by("-reputation_score", "created_at")
        .limit(radius)
    )
    nearby = sorted(above + below, key=lambda other: (-other.reputation_score, other.created_at))
    if not nearby:
        return []

    start_rank = User.objects(_ranked() & Q(reputation_score__gt=nearby[0].reputation_score)).count() + 1
    return [
        _entry(other, start_rank + index, is_current_user=other.id == user.id)
        for index, other in enumerate(nearby)
    ]


def leaderboard_stats() -> dict:
    ranked = User.objects(_ranked())
    total_users = ranked.count()
    total_reputation = ranked.sum("reputation_score")
    top = ranked.order_by("-reputation_score").only("name", "reputation_score").first()
    return {
        "total_users": total_users,
        "total_reputation": total_reputation,
        "average_reputation": scoring.round_half_up(total_reputation / total_users) if total_users else 0,
        "total_notes": ranked.sum("notes_created"),
        "total_quizzes_taken": ranked.sum("quizzes_taken"),
        "top_user": {"id": str(top.id), "name": top.name, "reputation_score": top.reputation_score} if top else None,
    }
