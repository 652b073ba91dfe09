from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    PROJECT_NAME: str = "Moodle BBB Manager"
    APP_VERSION: str = "1.0.0"
    MOODLE_BASE_URL: str = ""
    MOODLE_TOKEN: str = ""
    MOODLE_REST_FORMAT: str = "json"
    MOODLE_TIMEOUT_SECONDS: float = 30.0
    MOODLE_MAX_REDIRECTS: int = 10
    APP_TIMEZONE: str = "America/Bogota"
    DATE_FORMAT: str = "%d/%m/%Y %H:%M"
    SHOW_UNKNOWN_RESTRICTIONS: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @field_validator("APP_TIMEZONE", mode="before")
    @classmethod
    def normalize_app_timezone(cls, value: str) -> str:
        if value is None:
            return "America/Bogota"
        normalized = str(value).strip()
        if not normalized:
            return "America/Bogota"
        return normalized

    @field_validator("MOODLE_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        if value is None:
            return ""
        return str(value).strip().rstrip("/")


settings = Settings()
