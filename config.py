import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", 8000))

    DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "studyhive")

    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    REFRESH_SECRET_KEY = os.getenv("REFRESH_SECRET_KEY", "change-me-too")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 15))
    REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 7))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 10))
    RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", 60))

    MAILERSEND_API_URL = os.getenv("MAILERSEND_API_URL", "https://api.mailersend.com/v1/email")
    MAILERSEND_API_KEY = os.getenv("MAILERSEND_API_KEY", "")
    MAILERSEND_FROM_EMAIL = os.getenv("MAILERSEND_FROM_EMAIL", "noreply@studyhive.app")
    MAILERSEND_FROM_NAME = os.getenv("MAILERSEND_FROM_NAME", "StudyHive")

    R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "")
    R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "")
    R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "")
    R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "studyhive")
    R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")
    R2_REGION = os.getenv("R2_REGION", "auto")

    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def cors_origins(cls):
        if cls.FRONTEND_URL == "*":
            return ["*"]
        return [origin.strip() for origin in cls.FRONTEND_URL.split(",") if origin.strip()]
