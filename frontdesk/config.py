"""Application configuration."""

import json
from datetime import time
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_BUSINESS_HOURS = json.dumps(
    [
        {"day": "monday", "open": "09:00", "close": "17:00", "closed": False},
        {"day": "tuesday", "open": "09:00", "close": "17:00", "closed": False},
        {"day": "wednesday", "open": "09:00", "close": "17:00", "closed": False},
        {"day": "thursday", "open": "09:00", "close": "17:00", "closed": False},
        {"day": "friday", "open": "09:00", "close": "17:00", "closed": False},
        {"day": "saturday", "open": "09:00", "close": "13:00", "closed": False},
        {"day": "sunday", "open": "09:00", "close": "13:00", "closed": True},
    ]
)


class BusinessHours(BaseModel):
    """Opening hours of the clinic for one weekday."""

    day: str
    open: time
    close: time
    closed: bool = False

    @field_validator("day")
    @classmethod
    def validate_day(cls, v: str) -> str:
        """Normalize and validate weekday name."""
        day = v.strip().lower()
        if day not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {v}")
        return day


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Frontdesk Scheduling API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Redis
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # JWT (tokens are issued by the auth service, only verified here)
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Clinic
    clinic_id: str = Field(default="main", alias="CLINIC_ID")
    clinic_timezone: str = Field(default="UTC", alias="CLINIC_TIMEZONE")
    business_hours_json: str = Field(default=DEFAULT_BUSINESS_HOURS, alias="BUSINESS_HOURS")

    # Appointment rules
    default_appointment_duration: int = Field(default=30, alias="DEFAULT_APPOINTMENT_DURATION")
    min_appointment_duration: int = Field(default=15, alias="MIN_APPOINTMENT_DURATION")
    max_appointment_duration: int = Field(default=240, alias="MAX_APPOINTMENT_DURATION")
    min_lead_minutes: int = Field(default=0, alias="MIN_LEAD_MINUTES")
    min_advance_booking_hours: int = Field(default=2, alias="MIN_ADVANCE_BOOKING_HOURS")
    max_advance_booking_days: int = Field(default=90, alias="MAX_ADVANCE_BOOKING_DAYS")

    # Walk-in queue
    walk_in_estimated_wait_minutes: int = Field(default=15, alias="WALK_IN_ESTIMATED_WAIT_MINUTES")
    # Counters outlive their day so late check-ins near midnight still see them
    queue_counter_ttl_seconds: int = Field(default=172800, alias="QUEUE_COUNTER_TTL_SECONDS")

    @property
    def business_hours(self) -> dict[str, BusinessHours]:
        """Get business hours keyed by weekday name."""
        entries = [BusinessHours.model_validate(item) for item in json.loads(self.business_hours_json)]
        return {entry.day: entry for entry in entries}

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
