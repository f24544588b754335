from mongoengine.queryset.visitor import Q

from constants import MIN_SEARCH_LENGTH
from database import parse_object_id
from models import CommunityNote, Course, OfficialNote, PastQuestion, Quiz, User
from responses import course_summary, serialize, serialize_user, user_summary

PER_TYPE_LIMIT = 10
SUGGESTION_LIMIT = 5


def usable(term) -> bool:
    return bool(term) and len(term.strip()) >= MIN_SEARCH_LENGTH


def _any_field(term: str, *fields) -> Q:
    query = Q(**{f"{fields[0]}__icontains": term})
    for field in fields[1:]:
        query |= Q(**{f"{field}__icontains": term})
    return query


def _course_query(term):
    return _any_field(term, "title", "code", "description", "department") & Q(is_active=True)


def _note_query(term):
    return _any_field(term, "title", "content") & Q(is_active=True)


def _past_question_query(term):
    return _any_field(term, "title", "description") & Q(is_active=True)


def _tagged(items, kind, exclude=(), **expand):
    results = []
    for item in items:
        data = serialize(item, exclude=exclude, expand=expand)
        data["type"] = kind
        results.append(data)
    return results


def global_search(page, term: str):
    """Search every resource type, at most ten hits per type, paginated together."""
    if not usable(term):
        return [], 0
    term = term.strip()

    results = []
    results += _tagged(Course.objects(_course_query(term)).limit(PER_TYPE_LIMIT), "course")
    results += _tagged(
        CommunityNote.objects(_note_query(term)).limit(PER_TYPE_LIMIT),
        "community-note",
        exclude=("reported_by",),
        course=course_summary,
        author=user_summary,
    )
    results += _tagged(
        PastQuestion.objects(_past_question_query(term)).limit(PER_TYPE_LIMIT),
        "past-question",
        course=course_summary,
    )
    results += _tagged(
        OfficialNote.objects(_any_field(term, "title", "description", "category") & Q(is_active=True)).limit(PER_TYPE_LIMIT),
        "official-note",
        course=course_summary,
    )
    results += _tagged(
        Quiz.objects(_any_field(term, "title", "description") & Q(is_published=True, is_active=True))
        .exclude("questions")
        .limit(PER_TYPE_LIMIT),
        "quiz",
        course=course_summary,
    )
    return results[page.skip:page.skip + page.limit], len(results)


def search_courses(page, term: str, level_id=None, department=None, semester=None):
    if not usable(term):
        return [], 0
    query = _course_query(term.strip())
    if level_id:
        query &= Q(level=parse_object_id(level_id, "Invalid level id"))
    if department:
        query &= Q(department__icontains=department)
    if semester:
        query &= Q(semester=semester)
    queryset = Course.objects(query).order_by("code")
    return [serialize(course) for course in page.slice(queryset)], queryset.count()


def search_community_notes(page, term: str, course_id=None):
    if not usable(term):
        return [], 0
    query = _note_query(term.strip())
    if course_id:
        query &= Q(course=parse_object_id(course_id, "Invalid course id"))
    queryset = CommunityNote.objects(query).order_by("-score", "-created_at")
    notes = [
        serialize(note, exclude=("reported_by",), expand={"course": course_summary, "author": user_summary})
        for note in page.slice(queryset)
    ]
    return notes, queryset.count()


def search_past_questions(page, term: str, course_id=None, year=None, semester=None, type=None):
    if not usable(term):
        return [], 0
    query = _past_question_query(term.strip())
    if course_id:
        query &= Q(course=parse_object_id(course_id, "Invalid course id"))
    if year:
        query &= Q(year=year)
    if semester:
        query &= Q(semester=semester)
    if type:
        query &= Q(type=type)
    queryset = PastQuestion.objects(query).order_by("-year", "-semester")
    items = [serialize(item, expand={"course": course_summary}) for item in page.slice(queryset)]
    return items, queryset.count()


def search_users(page, term: str, role=None):
    if not usable(term):
        return [], 0
    query = _any_field(term.strip(), "name", "email") & Q(is_active=True, is_verified=True)
    if role:
        query &= Q(role=role)
    queryset = User.objects(query).order_by("-reputation_score")
    return [serialize_user(user) for user in page.slice(queryset)], queryset.count()


def suggestions(term: str, kind: str = "all") -> list:
    if not usable(term):
        return []
    term = term.strip()

    results = []
    if kind in ("all", "courses"):
        query = (Q(title__istartswith=term) | Q(code__istartswith=term)) & Q(is_active=True)
        for course in Course.objects(query).only("title", "code").limit(SUGGESTION_LIMIT):
            results.append({"text": f"{course.code} - {course.title}", "type": "course", "id": str(course.id)})
    if kind in ("all", "notes"):
        query = Q(title__istartswith=term) & Q(is_active=True)
        for note in CommunityNote.objects(query).only("title").limit(SUGGESTION_LIMIT):
            results.append({"text": note.title, "type": "community-note", "id": str(note.id)})
    return results[:10]


def trending() -> dict:
    popular_courses = (
        Course.objects(is_active=True)
        .order_by("-past_questions_count", "-community_notes_count")
        .only("title", "code")
        .limit(5)
    )
    popular_notes = CommunityNote.objects(is_active=True).order_by("-score", "-saves").only("title").limit(5)
    return {
        "courses": [f"{course.code} - {course.title}" for course in popular_courses],
        "notes": [note.title for note in popular_notes],
    }
