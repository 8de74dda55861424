from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Lunch Manager Admin"
    BACKEND: str = "local" # "local" (SQLAlchemy) or "firebase"
    DATABASE_URL: str = "sqlite:///./lunch_manager.db" # Only used by the local backend
    SECRET_KEY: str = "supersecretkey" # Change in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    FIREBASE_CREDENTIALS: Optional[str] = None # Path to a service account JSON, ADC when empty
    FIREBASE_PROJECT_ID: Optional[str] = None
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    ROOT_PATH: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
