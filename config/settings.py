from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.schema import COL_RUNTIME_CONFIG, DOC_TWILIO


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Core
    ENVIRONMENT: str = Field(default="production")
    SERVICE_NAME: str = Field(default="sos-relay")
    LOG_LEVEL: str = Field(default="INFO")

    # Caller auth (Firebase ID tokens are issued for this project)
    FIREBASE_PROJECT_ID: str = Field(default="")

    # Config store fallback for gateway credentials: {collection}/{doc} in Firestore
    FIRESTORE_PROJECT_ID: str = Field(default="")
    RUNTIME_CONFIG_COLLECTION: str = Field(default=COL_RUNTIME_CONFIG)
    TWILIO_CONFIG_DOC: str = Field(default=DOC_TWILIO)

    # SMS gateway. Empty means "look in the config store".
    TWILIO_SID: str = Field(default="", validation_alias=AliasChoices("TWILIO_SID", "TWILIO_ACCOUNT_SID"))
    TWILIO_TOKEN: str = Field(default="", validation_alias=AliasChoices("TWILIO_TOKEN", "TWILIO_AUTH_TOKEN"))
    TWILIO_NUMBER: str = Field(default="", validation_alias=AliasChoices("TWILIO_NUMBER", "TWILIO_FROM_NUMBER"))


settings = Settings()
