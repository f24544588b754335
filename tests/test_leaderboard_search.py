from models import User
from services import leaderboard, search, users


def set_score(user, score, **fields):
    User.objects(id=user.id).update_one(set__reputation_score=score, **{f"set__{k}": v for k, v in fields.items()})
    user.reload()
    return user


def test_global_ranking_skips_unverified(make_user, page):
    top = set_score(make_user("Top"), 50)
    middle = set_score(make_user("Middle"), 20)
    set_score(make_user("Hidden", is_verified=False), 99)

    entries, total = leaderboard.global_leaderboard(page)

    assert total == 2
    assert [(entry["name"], entry["rank"]) for entry in entries] == [("Top", 1), ("Middle", 2)]
    assert entries[0]["id"] == str(top.id)
    assert entries[1]["id"] == str(middle.id)


def test_user_position_and_percentile(make_user):
    set_score(make_user("Amaka"), 30)
    me = set_score(make_user("Bola"), 20)
    set_score(make_user("Chidi"), 10)

    position = leaderboard.user_position(me)

    assert position["global_rank"] == 2
    assert position["total_users"] == 3
    assert position["percentile"] == 50


def test_users_nearby_marks_current_user(make_user):
    for index, score in enumerate((40, 30, 20, 10)):
        user = set_score(make_user(f"U{index}"), score)
        if score == 20:
            me = user

    nearby = leaderboard.users_nearby(me, radius=1)

    assert [entry["reputation_score"] for entry in nearby] == [30, 20, 10]
    assert [entry["rank"] for entry in nearby] == [2, 3, 4]
    assert [entry["is_current_user"] for entry in nearby] == [False, True, False]


def test_reputation_recompute(make_user):
    user = make_user(
        "Busy",
        note_upvotes_received=3,
        note_downvotes_received=1,
        note_saves_received=2,
        comments_count=4,
        quiz_correct_answers=5,
    )
    assert users.update_reputation(str(user.id)).reputation_score == 6 - 1 + 2 + 4 + 5

    assert users.update_all_reputations() == 1
    assert User.objects.get(id=user.id).reputation_score == 16


def test_leaderboard_stats(make_user):
    set_score(make_user("Amaka"), 10, notes_created=2)
    set_score(make_user("Bola"), 5)

    stats = leaderboard.leaderboard_stats()

    assert stats["total_users"] == 2
    assert stats["total_reputation"] == 15
    assert stats["average_reputation"] == 8
    assert stats["total_notes"] == 2
    assert stats["top_user"]["name"] == "Amaka"


def test_short_terms_return_nothing(course, page):
    assert search.global_search(page, "c") == ([], 0)
    assert search.suggestions(" c ") == []


def test_global_search_tags_types(course, note, page):
    results, total = search.global_search(page, "comput")
    assert total == 1
    assert results[0]["type"] == "course"

    results, total = search.global_search(page, "merge sort")
    assert [result["type"] for result in results] == ["community-note"]
    assert "reported_by" not in results[0]


def test_search_courses_case_insensitive(course, page):
    items, total = search.search_courses(page, "CSC1")
    assert total == 1
    assert items[0]["code"] == "CSC101"


def test_suggestions_and_trending(course, note):
    suggestions = search.suggestions("Intro")
    assert suggestions == [{"text": "CSC101 - Introduction to Computing", "type": "course", "id": str(course.id)}]

    trending = search.trending()
    assert trending["notes"] == ["Sorting algorithms"]


def test_leaderboard_endpoints(client, make_user, headers_for):
    me = set_score(make_user("Me"), 12)
    response = client.get("/api/v1/leaderboard/")
    assert response.json()["data"][0]["name"] == "Me"

    response = client.get("/api/v1/leaderboard/me", headers=headers_for(me))
    assert response.json()["data"]["global_rank"] == 1

    assert client.get("/api/v1/leaderboard/nearby").status_code == 401
