from fastapi import APIRouter, Depends

from auth import get_current_user, require_rep
from constants import DOWNLOAD_URL_TTL
from models import User
from responses import success_response
from schemas import DownloadUrlRequest, UploadUrlRequest
from services import uploads

router = APIRouter()

@router.post("/signed-url")
async def signed_upload_url(payload: UploadUrlRequest, current_user: User = Depends(require_rep)):
    result = uploads.create_upload_url(payload.file_name, payload.file_type, payload.file_size, payload.folder)
    return success_response("Upload URL generated successfully", result)

@router.post("/download-url")
async def signed_download_url(payload: DownloadUrlRequest, current_user: User = Depends(get_current_user)):
    url = uploads.create_download_url(payload.file_key)
    return success_response(
        "Download URL generated successfully",
        {"download_url": url, "expires_in": DOWNLOAD_URL_TTL},
    )
