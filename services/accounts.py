import logging
import re
from datetime import timedelta

from mongoengine.errors import NotUniqueError

import auth
from config import Config
from errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from mailer import EmailDeliveryError, email_service
from models import User, utcnow
from responses import serialize_user

logger = logging.getLogger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")
RESET_MESSAGE = "If email exists, reset link will be sent"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _issue_tokens(user: User) -> dict:
    access_token = auth.create_access_token(user)
    refresh_token = auth.create_refresh_token(user)
    # single active refresh token per user
    User.objects(id=user.id).update_one(set__refresh_token=auth.hash_token(refresh_token))
    user.refresh_token = auth.hash_token(refresh_token)
    return {"access_token": access_token, "refresh_token": refresh_token, "token_type": "bearer"}


def _account_summary(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "is_verified": user.is_verified,
    }


def _send_verification(user: User, otp: str):
    try:
        email_service.send_verification_email(user.email, user.name, otp)
    except EmailDeliveryError:
        logger.exception("Failed to send verification email to %s", user.email)


def signup(name: str, email: str, password: str) -> dict:
    email = _normalize_email(email)
    if User.objects(email=email).first():
        raise Conflict("Email already registered")

    otp = auth.generate_otp()
    user = User(
        name=name.strip(),
        email=email,
        password_hash=auth.get_password_hash(password),
        otp=auth.hash_token(otp),
        otp_expiry=utcnow() + timedelta(minutes=Config.OTP_EXPIRE_MINUTES),
    )
    try:
        user.save()
    except NotUniqueError:
        raise Conflict("Email already registered")

    logger.info("New account created for %s", email)
    _send_verification(user, otp)

    result = {"user": _account_summary(user)}
    result.update(_issue_tokens(user))
    if Config.is_development():
        result["verification_otp"] = otp
    return result


def login(email: str, password: str) -> dict:
    user = User.objects(email=_normalize_email(email)).first()
    if user is None:
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    if not auth.verify_password(password, user.password_hash):
        raise Unauthorized("Invalid email or password")

    user.last_login = utcnow()
    User.objects(id=user.id).update_one(set__last_login=user.last_login)

    result = {"user": _account_summary(user)}
    result.update(_issue_tokens(user))
    return result


def refresh(refresh_token: str) -> dict:
    if not refresh_token:
        raise Unauthorized("Refresh token required")

    payload = auth.decode_token(
        refresh_token,
        Config.REFRESH_SECRET_KEY,
        "refresh",
        "Refresh token expired",
        "Invalid refresh token",
    )
    user = User.objects(id=payload["sub"]).first()
    if user is None or user.refresh_token != auth.hash_token(refresh_token):
        raise Unauthorized("Invalid refresh token")
    if not user.is_active:
        raise Forbidden("Account is deactivated")

    return {"access_token": auth.create_access_token(user), "token_type": "bearer"}


def logout(user: User):
    User.objects(id=user.id).update_one(unset__refresh_token=True)


def verify_email(otp: str):
    if not otp or not OTP_PATTERN.match(otp):
        raise BadRequest("Invalid OTP format. OTP must be 6 digits.")

    user = User.objects(otp=auth.hash_token(otp), otp_expiry__gt=utcnow()).first()
    if user is None:
        raise BadRequest("Invalid or expired OTP. Please request a new OTP.")

    User.objects(id=user.id).update_one(set__is_verified=True, unset__otp=True, unset__otp_expiry=True)
    logger.info("Email verified for %s", user.email)


def resend_verification(email: str):
    user = User.objects(email=_normalize_email(email)).first()
    if user is None:
        raise NotFound("User not found")
    if user.is_verified:
        raise BadRequest("Email already verified")

    otp = auth.generate_otp()
    User.objects(id=user.id).update_one(
        set__otp=auth.hash_token(otp),
        set__otp_expiry=utcnow() + timedelta(minutes=Config.OTP_EXPIRE_MINUTES),
    )
    _send_verification(user, otp)
    return otp


def forgot_password(email: str):
    """Issue a reset token. Unknown emails get the same answer as known ones."""
    user = User.objects(email=_normalize_email(email)).first()
    if user is None:
        return None

    token = auth.generate_reset_token()
    User.objects(id=user.id).update_one(
        set__reset_password_token=auth.hash_token(token),
        set__reset_password_expiry=utcnow() + timedelta(minutes=Config.RESET_TOKEN_EXPIRE_MINUTES),
    )
    try:
        email_service.send_password_reset_email(user.email, user.name, token)
    except EmailDeliveryError:
        logger.exception("Failed to send password reset email to %s", user.email)
    return token


def reset_password(token: str, new_password: str):
    user = User.objects(
        reset_password_token=auth.hash_token(token or ""),
        reset_password_expiry__gt=utcnow(),
    ).first()
    if user is None:
        raise BadRequest("Invalid or expired reset token")

    User.objects(id=user.id).update_one(
        set__password_hash=auth.get_password_hash(new_password),
        unset__reset_password_token=True,
        unset__reset_password_expiry=True,
        unset__refresh_token=True,
    )
    logger.info("Password reset for %s", user.email)


def change_password(user: User, current_password: str, new_password: str):
    if not auth.verify_password(current_password, user.password_hash):
        raise Unauthorized("Current password is incorrect")
    User.objects(id=user.id).update_one(
        set__password_hash=auth.get_password_hash(new_password),
        unset__refresh_token=True,
    )


def profile(user: User) -> dict:
    return serialize_user(user)
