# foodrescue/core/config.py
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # storage
    store_backend: Literal["memory", "mongo"] = "memory"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "foodrescue"

    # SMS via Twilio (all three must be set, otherwise messages are only logged)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_api_base: str = "https://api.twilio.com"
    sms_timeout: float = Field(default=10.0, gt=0)

    # logging
    log_level: str = "INFO"
    log_format: str = "json"
    service_name: str = "foodrescue"

    # demo data / coordinate seeding (San Francisco by default)
    seed_demo_data: bool = False
    seed_center_lat: float = Field(default=37.7749, ge=-90, le=90)
    seed_center_lng: float = Field(default=-122.4194, ge=-180, le=180)
    seed_radius_km: float = Field(default=5.0, ge=0)

    # claims on donations past expires_at are accepted unless this is on
    reject_expired_claims: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v.lower() not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()

    @property
    def sms_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
