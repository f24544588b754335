import base64
import hashlib
import secrets
from typing import Optional
import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from datetime import datetime, timedelta, timezone
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from bson import ObjectId
from config import Config
from errors import Forbidden, Unauthorized
from models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def _prehash(password: str) -> bytes:
    # base64 keeps the digest free of NUL bytes, which bcrypt would truncate at
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())

def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_prehash(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False

def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=Config.BCRYPT_ROUNDS)).decode("utf-8")

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def generate_otp() -> str:
    return str(secrets.randbelow(900000) + 100000)

def generate_reset_token() -> str:
    return secrets.token_hex(32)

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(to_encode, Config.SECRET_KEY, algorithm=Config.ALGORITHM)

def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=Config.REFRESH_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user.id),
        "type": "refresh",
        # jti keeps tokens issued within the same second distinct
        "jti": secrets.token_hex(8),
        "exp": expire,
    }
    return jwt.encode(to_encode, Config.REFRESH_SECRET_KEY, algorithm=Config.ALGORITHM)

def decode_token(token: str, secret: str, expected_type: str, expired_message: str, invalid_message: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[Config.ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized(expired_message)
    except JWTError:
        raise Unauthorized(invalid_message)

    if payload.get("type") != expected_type or not ObjectId.is_valid(str(payload.get("sub"))):
        raise Unauthorized(invalid_message)
    return payload

def _load_user(token: str) -> User:
    payload = decode_token(token, Config.SECRET_KEY, "access", "Token expired", "Invalid token")
    user = User.objects(id=payload["sub"]).first()
    if user is None:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return user

async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> User:
    if token is None:
        raise Unauthorized("No token provided, authorization denied")
    return _load_user(token)

async def get_optional_user(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[User]:
    if token is None:
        return None
    try:
        return _load_user(token)
    except (Unauthorized, Forbidden):
        return None

def require_roles(*roles: str):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden(f"Access denied. Required role(s): {', '.join(roles)}")
        return current_user
    return checker

require_rep = require_roles("rep", "admin")
require_admin = require_roles("admin")
