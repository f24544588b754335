from fastapi import APIRouter, Depends, status

from auth import get_current_user
from models import User
from responses import success_response
from schemas import (
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    OtpRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from services import accounts

router = APIRouter()

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest):
    result = accounts.signup(payload.name, payload.email, payload.password)
    message = "Account created. Check your email for a 6-digit verification code."
    return success_response(message, result)

@router.post("/login")
async def login(payload: LoginRequest):
    return success_response("Login successful", accounts.login(payload.email, payload.password))

@router.post("/refresh")
async def refresh(payload: RefreshRequest):
    return success_response("Token refreshed successfully", accounts.refresh(payload.refresh_token))

@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    accounts.logout(current_user)
    return success_response("Logged out successfully")

@router.post("/verify-email")
async def verify_email(payload: OtpRequest):
    accounts.verify_email(payload.otp)
    return success_response("Email verified successfully")

@router.post("/resend-verification")
async def resend_verification(payload: EmailRequest):
    accounts.resend_verification(payload.email)
    return success_response("Verification email sent")

@router.post("/forgot-password")
async def forgot_password(payload: EmailRequest):
    accounts.forgot_password(payload.email)
    return success_response(accounts.RESET_MESSAGE)

@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest):
    accounts.reset_password(payload.token, payload.new_password)
    return success_response("Password reset successfully")

@router.post("/change-password")
async def change_password(payload: ChangePasswordRequest, current_user: User = Depends(get_current_user)):
    accounts.change_password(current_user, payload.current_password, payload.new_password)
    return success_response("Password changed successfully")

@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return success_response("Profile retrieved successfully", accounts.profile(current_user))
