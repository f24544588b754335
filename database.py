import logging

from bson import ObjectId
from mongoengine import connect, disconnect

from config import Config
from errors import BadRequest, NotFound

logger = logging.getLogger(__name__)

def connect_db(host=None, **kwargs):
    logger.info("Connecting to MongoDB database %s", Config.DATABASE_NAME)
    return connect(
        db=Config.DATABASE_NAME,
        host=host or Config.DATABASE_URL,
        **kwargs
    )

def close_db():
    disconnect()

def parse_object_id(value, message="Invalid id"):
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise BadRequest(message)
    return ObjectId(str(value))


def ref_id(document, field):
    """Id held by a reference field, without dereferencing it."""
    value = document._data.get(field)
    if value is None or isinstance(value, ObjectId):
        return value
    return getattr(value, "id", None)


def get_or_404(model, object_id, message="Resource not found", **filters):
    if not object_id or not ObjectId.is_valid(str(object_id)):
        raise NotFound(message)
    document = model.objects(id=object_id, **filters).first()
    if document is None:
        raise NotFound(message)
    return document
