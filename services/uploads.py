import storage
from constants import ALLOWED_FILE_EXTENSIONS, MAX_FILE_SIZE, UPLOAD_URL_TTL, DOWNLOAD_URL_TTL
from errors import ApiError, BadRequest

MAX_FILE_SIZE_MB = MAX_FILE_SIZE // (1024 * 1024)


class StorageUnavailable(ApiError):
    status_code = 502


def _check_size(file_size: int):
    if file_size > MAX_FILE_SIZE:
        raise BadRequest(f"File size exceeds maximum limit of {MAX_FILE_SIZE_MB}MB")


def _check_extension(file_name: str):
    if storage.file_extension(file_name) not in ALLOWED_FILE_EXTENSIONS:
        raise BadRequest(f"File type not allowed. Allowed types: {', '.join(ALLOWED_FILE_EXTENSIONS)}")


def create_upload_url(file_name: str, file_type: str, file_size: int, folder: str) -> dict:
    _check_size(file_size)
    _check_extension(file_name)

    file_key = storage.generate_file_key(folder, file_name)
    try:
        upload_url = storage.issue_upload_url(file_key, file_type, UPLOAD_URL_TTL)
    except storage.StorageError as exc:
        raise StorageUnavailable(str(exc))

    return {
        "upload_url": upload_url,
        "file_key": file_key,
        "public_url": storage.public_url(file_key),
        "expires_in": UPLOAD_URL_TTL,
    }


def create_download_url(file_key: str, ttl: int = DOWNLOAD_URL_TTL) -> str:
    try:
        return storage.issue_download_url(file_key, ttl)
    except storage.StorageError as exc:
        raise StorageUnavailable(str(exc))


def validate_file_metadata(file_name, file_type, file_size, file_key):
    if not file_name or not file_type or not file_size or not file_key:
        raise BadRequest("Missing required file metadata")
    _check_size(file_size)
    _check_extension(file_name)
