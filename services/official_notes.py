from models import OfficialNote
from services.file_resources import FileResourceService


class OfficialNoteService(FileResourceService):
    editable_fields = ("title", "description", "category", "is_active")


official_notes = OfficialNoteService(
    OfficialNote,
    counter="official_notes_count",
    label="Official note",
    ordering=("-created_at",),
    filters=("category",),
)
