import os
from typing import List, Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """
    Runtime configuration, read from the environment once at startup and
    handed to the application factory.
    """
    secret_key: str = Field("dev-secret-key-change-me", description="HS256 signing secret for access tokens")
    algorithm: str = "HS256"
    bcrypt_rounds: int = 10
    database_url: Optional[str] = None
    database_name: str = "blogging"
    firebase_credentials: Optional[str] = Field(None, description="Path to a Firebase service account JSON file")
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_upload_preset: Optional[str] = None
    upload_folder: str = "Blogging"
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            secret_key=os.getenv("SECRET_ACCESS_KEY", "dev-secret-key-change-me"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME", "blogging"),
            firebase_credentials=os.getenv("FIREBASE_CREDENTIALS"),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_upload_preset=os.getenv("CLOUDINARY_UPLOAD_PRESET"),
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
