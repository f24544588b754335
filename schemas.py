from typing import List, Literal, Optional
from pydantic import BaseModel, EmailStr, Field

Role = Literal["student", "rep", "admin"]
Semester = Literal["First", "Second"]
VoteType = Literal["upvote", "downvote"]
EntityType = Literal["note", "comment"]
Difficulty = Literal["Easy", "Medium", "Hard"]
PastQuestionType = Literal[
    "past-exam",
    "past-mid-semester",
    "past-quiz",
    "past-assignment",
    "past-class-work",
    "past-group-project",
    "past-project",
]
OfficialNoteCategory = Literal["Lecture Notes", "Slides", "Textbook", "Reference Material", "Other"]
RequestType = Literal["past-question", "official-note", "community-note", "quiz", "other"]
UploadFolder = Literal["past-questions", "official-notes", "profile-pictures"]


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class OtpRequest(BaseModel):
    otp: str


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8, max_length=128)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    profile_picture: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Role


class AssignCourses(BaseModel):
    course_ids: List[str] = Field(..., min_length=1)


class LevelCreate(BaseModel):
    name: str = Field(..., max_length=50)
    code: str = Field(..., max_length=10)
    order: int = Field(..., ge=1)
    description: Optional[str] = Field(None, max_length=500)


class LevelUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    code: Optional[str] = Field(None, max_length=10)
    order: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class StatusUpdate(BaseModel):
    is_active: bool


class CourseCreate(BaseModel):
    title: str = Field(..., max_length=200)
    code: str = Field(..., max_length=20)
    level: str
    department: str = Field(..., max_length=100)
    semester: Semester
    credit_units: int = Field(3, ge=1, le=6)
    description: Optional[str] = Field(None, max_length=1000)


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    level: Optional[str] = None
    department: Optional[str] = Field(None, max_length=100)
    semester: Optional[Semester] = None
    credit_units: Optional[int] = Field(None, ge=1, le=6)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None


class AssignReps(BaseModel):
    rep_ids: List[str] = Field(..., min_length=1)


class UploadUrlRequest(BaseModel):
    file_name: str
    file_type: str
    file_size: int = Field(..., gt=0)
    folder: UploadFolder


class DownloadUrlRequest(BaseModel):
    file_key: str


class FileMetadata(BaseModel):
    course: str
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    file_name: str
    file_type: str
    file_size: int = Field(..., gt=0)
    file_key: str
    file_url: Optional[str] = None


class PastQuestionCreate(FileMetadata):
    year: int = Field(..., ge=2000)
    semester: Semester
    type: PastQuestionType


class PastQuestionUpdate(BaseModel):
    course: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    year: Optional[int] = Field(None, ge=2000)
    semester: Optional[Semester] = None
    type: Optional[PastQuestionType] = None
    is_active: Optional[bool] = None


class VerifyUpdate(BaseModel):
    is_verified: bool


class OfficialNoteCreate(FileMetadata):
    category: OfficialNoteCategory = "Lecture Notes"


class OfficialNoteUpdate(BaseModel):
    course: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[OfficialNoteCategory] = None
    is_active: Optional[bool] = None


class CommunityNoteCreate(BaseModel):
    course: str
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=10)
    tags: List[str] = Field(default_factory=list, max_length=10)


class CommunityNoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    content: Optional[str] = Field(None, min_length=10)
    tags: Optional[List[str]] = Field(None, max_length=10)


class PinUpdate(BaseModel):
    is_pinned: bool


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class VoteCast(BaseModel):
    entity_type: EntityType
    entity_id: str
    vote_type: VoteType


class VoteTarget(BaseModel):
    entity_type: EntityType
    entity_id: str


class OptionIn(BaseModel):
    text: str = Field(..., min_length=1)
    is_correct: bool = False


class QuestionIn(BaseModel):
    question_id: Optional[str] = None
    text: str = Field(..., min_length=1)
    options: List[OptionIn] = Field(..., min_length=2, max_length=6)
    explanation: Optional[str] = None
    points: int = Field(1, ge=1)


class QuizCreate(BaseModel):
    course: str
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    questions: List[QuestionIn] = Field(..., min_length=1)
    time_limit: Optional[int] = Field(None, ge=1)
    passing_score: int = Field(50, ge=0, le=100)
    difficulty: Difficulty = "Medium"
    shuffle_questions: bool = False
    shuffle_options: bool = False
    allow_review: bool = True
    max_attempts: Optional[int] = Field(None, ge=1)
    is_published: bool = False


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    questions: Optional[List[QuestionIn]] = Field(None, min_length=1)
    time_limit: Optional[int] = Field(None, ge=1)
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    difficulty: Optional[Difficulty] = None
    shuffle_questions: Optional[bool] = None
    shuffle_options: Optional[bool] = None
    allow_review: Optional[bool] = None
    max_attempts: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class PublishUpdate(BaseModel):
    is_published: bool


class AnswerIn(BaseModel):
    question_id: str
    selected_option_index: int = Field(..., ge=0)


class AttemptSubmit(BaseModel):
    answers: List[AnswerIn]
    time_spent: int = Field(0, ge=0)


class RequestDetailsIn(BaseModel):
    year: Optional[int] = None
    semester: Optional[Semester] = None
    topic: Optional[str] = Field(None, max_length=200)


class MaterialRequestCreate(BaseModel):
    course: str
    request_type: RequestType
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    specific_details: Optional[RequestDetailsIn] = None


class MaterialRequestUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    specific_details: Optional[RequestDetailsIn] = None


class RequestVote(BaseModel):
    vote_type: VoteType


class FulfillRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=500)
    resource_id: Optional[str] = None
    resource_type: Optional[str] = Field(None, max_length=50)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
