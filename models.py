from datetime import datetime, timezone

from bson import ObjectId
from mongoengine import Document, EmbeddedDocument, ValidationError, fields

from constants import (
    OFFICIAL_NOTE_CATEGORIES,
    PAST_QUESTION_TYPES,
    QUIZ_DIFFICULTIES,
    REQUEST_STATUSES,
    REQUEST_TYPES,
    ROLES,
    SEMESTERS,
    VOTE_ENTITY_TYPES,
    VOTE_TYPES,
)
import scoring


def utcnow():
    # MongoDB hands back naive UTC datetimes; keep ours comparable
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampedDocument(Document):
    created_at = fields.DateTimeField(default=utcnow)
    updated_at = fields.DateTimeField(default=utcnow)

    meta = {"abstract": True}

    def save(self, *args, **kwargs):
        self.updated_at = utcnow()
        return super().save(*args, **kwargs)


class User(TimestampedDocument):
    name = fields.StringField(required=True, min_length=2, max_length=100)
    email = fields.EmailField(required=True, unique=True)
    password_hash = fields.StringField(required=True)
    role = fields.StringField(choices=ROLES, default="student")

    is_verified = fields.BooleanField(default=False)
    otp = fields.StringField()
    otp_expiry = fields.DateTimeField()
    reset_password_token = fields.StringField()
    reset_password_expiry = fields.DateTimeField()
    refresh_token = fields.StringField()

    reputation_score = fields.IntField(default=0)
    notes_created = fields.IntField(default=0)
    note_upvotes_received = fields.IntField(default=0)
    note_downvotes_received = fields.IntField(default=0)
    note_saves_received = fields.IntField(default=0)
    comments_count = fields.IntField(default=0)
    quizzes_taken = fields.IntField(default=0)
    quiz_correct_answers = fields.IntField(default=0)

    saved_notes = fields.ListField(fields.ObjectIdField())
    assigned_courses = fields.ListField(fields.ReferenceField("Course"))

    profile_picture = fields.StringField()
    bio = fields.StringField(max_length=500)
    is_active = fields.BooleanField(default=True)
    last_login = fields.DateTimeField()

    meta = {
        "collection": "users",
        "indexes": ["role", "-reputation_score"],
    }

    PRIVATE_FIELDS = (
        "password_hash",
        "otp",
        "otp_expiry",
        "reset_password_token",
        "reset_password_expiry",
        "refresh_token",
    )

    def clean(self):
        if self.email:
            self.email = self.email.strip().lower()

    def compute_reputation(self) -> int:
        return scoring.reputation(
            note_upvotes_received=self.note_upvotes_received,
            note_downvotes_received=self.note_downvotes_received,
            note_saves_received=self.note_saves_received,
            comments_count=self.comments_count,
            quiz_correct_answers=self.quiz_correct_answers,
        )


class Level(TimestampedDocument):
    name = fields.StringField(required=True, unique=True, max_length=50)
    code = fields.StringField(required=True, unique=True, max_length=10)
    description = fields.StringField(max_length=500)
    order = fields.IntField(required=True, min_value=1)
    is_active = fields.BooleanField(default=True)
    created_by = fields.ReferenceField(User)

    meta = {"collection": "levels", "ordering": ["order"]}

    def clean(self):
        if self.code:
            self.code = self.code.strip().upper()


class Course(TimestampedDocument):
    title = fields.StringField(required=True, max_length=200)
    code = fields.StringField(required=True, unique=True, max_length=20)
    description = fields.StringField(max_length=1000)
    level = fields.ReferenceField(Level, required=True)
    department = fields.StringField(required=True, max_length=100)
    credit_units = fields.IntField(min_value=1, max_value=6, default=3)
    semester = fields.StringField(choices=SEMESTERS, required=True)
    is_active = fields.BooleanField(default=True)

    past_questions_count = fields.IntField(default=0)
    official_notes_count = fields.IntField(default=0)
    community_notes_count = fields.IntField(default=0)
    quizzes_count = fields.IntField(default=0)

    assigned_reps = fields.ListField(fields.ReferenceField(User))
    created_by = fields.ReferenceField(User)

    meta = {"collection": "courses", "indexes": ["level", "department", "semester"]}

    COUNTERS = ("past_questions_count", "official_notes_count", "community_notes_count", "quizzes_count")

    def clean(self):
        if self.code:
            self.code = self.code.strip().upper()

    def resource_total(self) -> int:
        return sum(getattr(self, counter) or 0 for counter in self.COUNTERS)


class FileResource(TimestampedDocument):
    course = fields.ReferenceField(Course, required=True)
    title = fields.StringField(required=True, max_length=200)
    description = fields.StringField(max_length=1000)
    file_url = fields.StringField(required=True)
    file_key = fields.StringField(required=True, unique=True)
    file_name = fields.StringField(required=True)
    file_size = fields.IntField(required=True, min_value=1)
    mime_type = fields.StringField(required=True)
    uploaded_by = fields.ReferenceField(User, required=True)
    download_count = fields.IntField(default=0)
    is_active = fields.BooleanField(default=True)

    meta = {"abstract": True}


class PastQuestion(FileResource):
    year = fields.IntField(required=True, min_value=2000)
    semester = fields.StringField(choices=SEMESTERS, required=True)
    type = fields.StringField(choices=PAST_QUESTION_TYPES, required=True)
    is_verified = fields.BooleanField(default=False)

    meta = {"collection": "past_questions", "indexes": ["course", "year", "type"]}

    def clean(self):
        if self.year and self.year > utcnow().year:
            raise ValidationError("Year cannot be in the future")


class OfficialNote(FileResource):
    category = fields.StringField(choices=OFFICIAL_NOTE_CATEGORIES, default="Lecture Notes")

    meta = {"collection": "official_notes", "indexes": ["course", "category"]}


class CommunityNote(TimestampedDocument):
    course = fields.ReferenceField(Course, required=True)
    author = fields.ReferenceField(User, required=True)
    title = fields.StringField(required=True, min_length=3, max_length=200)
    content = fields.StringField(required=True, min_length=10)
    tags = fields.ListField(fields.StringField(max_length=30))

    upvotes = fields.IntField(default=0)
    downvotes = fields.IntField(default=0)
    saves = fields.IntField(default=0)
    comment_count = fields.IntField(default=0)
    view_count = fields.IntField(default=0)
    score = fields.IntField(default=0)

    is_pinned = fields.BooleanField(default=False)
    is_active = fields.BooleanField(default=True)
    report_count = fields.IntField(default=0)
    reported_by = fields.ListField(fields.ObjectIdField())
    last_edited_at = fields.DateTimeField()

    meta = {
        "collection": "community_notes",
        "indexes": ["course", "author", "-score", "tags"],
    }

    def clean(self):
        if self.tags:
            self.tags = sorted({tag.strip().lower() for tag in self.tags if tag and tag.strip()})

    def compute_score(self) -> int:
        return scoring.note_score(self.upvotes, self.downvotes, self.saves, self.comment_count)


class Comment(TimestampedDocument):
    note = fields.ReferenceField(CommunityNote, required=True)
    user = fields.ReferenceField(User, required=True)
    content = fields.StringField(required=True, min_length=1, max_length=1000)
    upvotes = fields.IntField(default=0)
    downvotes = fields.IntField(default=0)
    is_active = fields.BooleanField(default=True)

    meta = {"collection": "comments", "indexes": ["note", "user"]}


class Vote(TimestampedDocument):
    user = fields.ReferenceField(User, required=True)
    entity_type = fields.StringField(choices=VOTE_ENTITY_TYPES, required=True)
    entity_id = fields.ObjectIdField(required=True)
    vote_type = fields.StringField(choices=VOTE_TYPES, required=True)

    meta = {
        "collection": "votes",
        "indexes": [
            {"fields": ["user", "entity_type", "entity_id"], "unique": True},
            ["entity_type", "entity_id", "vote_type"],
        ],
    }


class Option(EmbeddedDocument):
    text = fields.StringField(required=True)
    is_correct = fields.BooleanField(default=False)


class Question(EmbeddedDocument):
    question_id = fields.ObjectIdField(default=ObjectId)
    text = fields.StringField(required=True)
    options = fields.EmbeddedDocumentListField(Option)
    explanation = fields.StringField()
    points = fields.IntField(min_value=1, default=1)


class QuizStats(EmbeddedDocument):
    attempts_count = fields.IntField(default=0)
    average_score = fields.IntField(default=0)
    pass_rate = fields.IntField(default=0)


class Quiz(TimestampedDocument):
    course = fields.ReferenceField(Course, required=True)
    title = fields.StringField(required=True, max_length=200)
    description = fields.StringField(max_length=1000)
    questions = fields.EmbeddedDocumentListField(Question)
    time_limit = fields.IntField(min_value=1)
    passing_score = fields.IntField(min_value=0, max_value=100, default=50)
    difficulty = fields.StringField(choices=QUIZ_DIFFICULTIES, default="Medium")
    shuffle_questions = fields.BooleanField(default=False)
    shuffle_options = fields.BooleanField(default=False)
    allow_review = fields.BooleanField(default=True)
    max_attempts = fields.IntField(min_value=1)
    stats = fields.EmbeddedDocumentField(QuizStats, default=QuizStats)
    created_by = fields.ReferenceField(User, required=True)
    is_active = fields.BooleanField(default=True)
    is_published = fields.BooleanField(default=False)

    meta = {"collection": "quizzes", "indexes": ["course", "created_by"]}

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    def clean(self):
        if not self.questions:
            raise ValidationError("Quiz must have at least one question")
        for question in self.questions:
            if len(question.options) < 2 or len(question.options) > 6:
                raise ValidationError(f'Question "{question.text}" must have between 2 and 6 options')
            if not any(option.is_correct for option in question.options):
                raise ValidationError(f'Question "{question.text}" must have at least one correct answer')


class AttemptAnswer(EmbeddedDocument):
    question_id = fields.ObjectIdField(required=True)
    selected_option_index = fields.IntField(required=True, min_value=0)
    is_correct = fields.BooleanField(default=False)
    points_earned = fields.IntField(default=0)


class QuizAttempt(TimestampedDocument):
    quiz = fields.ReferenceField(Quiz, required=True)
    user = fields.ReferenceField(User, required=True)
    answers = fields.EmbeddedDocumentListField(AttemptAnswer)
    score = fields.IntField(min_value=0, max_value=100, required=True)
    points_earned = fields.IntField(default=0)
    total_points = fields.IntField(default=0)
    correct_answers = fields.IntField(default=0)
    total_questions = fields.IntField(default=0)
    is_passed = fields.BooleanField(default=False)
    time_spent = fields.IntField(min_value=0, default=0)
    started_at = fields.DateTimeField()
    submitted_at = fields.DateTimeField()
    attempt_number = fields.IntField(min_value=1, required=True)

    meta = {
        "collection": "quiz_attempts",
        "indexes": [
            {"fields": ["quiz", "user", "attempt_number"], "unique": True},
            "user",
        ],
    }


class RequestDetails(EmbeddedDocument):
    year = fields.IntField()
    semester = fields.StringField(choices=SEMESTERS)
    topic = fields.StringField(max_length=200)


class MaterialRequest(TimestampedDocument):
    course = fields.ReferenceField(Course, required=True)
    requested_by = fields.ReferenceField(User, required=True)
    request_type = fields.StringField(choices=REQUEST_TYPES, required=True)
    title = fields.StringField(required=True, max_length=200)
    description = fields.StringField(max_length=1000)
    specific_details = fields.EmbeddedDocumentField(RequestDetails)
    status = fields.StringField(choices=REQUEST_STATUSES, default="pending")

    upvotes = fields.IntField(default=0)
    downvotes = fields.IntField(default=0)
    priority = fields.IntField(default=0)
    voters = fields.ListField(fields.ObjectIdField())

    fulfilled_by = fields.ReferenceField(User)
    fulfilled_at = fields.DateTimeField()
    fulfillment_note = fields.StringField(max_length=500)
    resource_type = fields.StringField(max_length=50)
    resource_id = fields.ObjectIdField()

    rejected_by = fields.ReferenceField(User)
    rejected_at = fields.DateTimeField()
    rejection_reason = fields.StringField(max_length=500)

    is_active = fields.BooleanField(default=True)

    meta = {"collection": "requests", "indexes": ["course", "status", "-priority"]}

    def clean(self):
        self.priority = (self.upvotes or 0) - (self.downvotes or 0)
