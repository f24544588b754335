ROLES = ["student", "rep", "admin"]
STAFF_ROLES = ("rep", "admin")

SEMESTERS = ["First", "Second"]

VOTE_TYPES = ["upvote", "downvote"]
VOTE_ENTITY_TYPES = ["note", "comment"]

PAST_QUESTION_TYPES = [
    "past-exam",
    "past-mid-semester",
    "past-quiz",
    "past-assignment",
    "past-class-work",
    "past-group-project",
    "past-project",
]

OFFICIAL_NOTE_CATEGORIES = ["Lecture Notes", "Slides", "Textbook", "Reference Material", "Other"]

QUIZ_DIFFICULTIES = ["Easy", "Medium", "Hard"]

REQUEST_TYPES = ["past-question", "official-note", "community-note", "quiz", "other"]
REQUEST_STATUSES = ["pending", "in-progress", "fulfilled", "rejected"]
TERMINAL_REQUEST_STATUSES = ("fulfilled", "rejected")

UPLOAD_FOLDERS = ["past-questions", "official-notes", "profile-pictures"]
ALLOWED_FILE_EXTENSIONS = [".pdf", ".doc", ".docx", ".ppt", ".pptx"]
MAX_FILE_SIZE = 50 * 1024 * 1024

UPLOAD_URL_TTL = 3600
DOWNLOAD_URL_TTL = 86400

# Weights used for both note score and user reputation
REPUTATION_WEIGHTS = {
    "upvote": 2,
    "save": 1,
    "comment": 1,
    "downvote": -1,
    "quiz_correct": 1,
}

REPORT_THRESHOLD = 5
MIN_SEARCH_LENGTH = 2

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
