# backend/config.py
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "AV Integration Project Tracker"

    # Cấu hình Database
    DATABASE_URL: str = "sqlite:///./avnet.db"

    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8001

    # JSON file thay thế bảng IP pool mặc định (tuỳ chọn)
    ADDRESS_POOL_FILE: Optional[str] = None

settings = Settings()
