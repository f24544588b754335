from database import get_or_404
from models import PastQuestion
from services.file_resources import FileResourceService


class PastQuestionService(FileResourceService):
    editable_fields = ("title", "description", "year", "semester", "type", "is_active")

    def set_verified(self, resource_id, is_verified: bool) -> PastQuestion:
        past_question = get_or_404(PastQuestion, resource_id, self.not_found)
        PastQuestion.objects(id=past_question.id).update_one(set__is_verified=is_verified)
        past_question.is_verified = is_verified
        return past_question


past_questions = PastQuestionService(
    PastQuestion,
    counter="past_questions_count",
    label="Past question",
    ordering=("-year", "semester"),
    filters=("year", "semester", "type", "is_verified"),
)
