from dotenv import load_dotenv
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from typing import List

# Load environment variables from .env file
load_dotenv(".env")


class Settings(BaseSettings):
    """Class to store all the settings of the auth code service."""

    # ------------------------------
    # Server
    # ------------------------------
    PORT: int = Field(default=3000)
    DEV_MODE: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")
    API_PREFIX: str = Field(default="")
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # ------------------------------
    # Appwrite - Required at request time, not validated at startup
    # ------------------------------
    APPWRITE_ENDPOINT: str = Field(default="")
    APPWRITE_PROJECT_ID: str = Field(default="")
    APPWRITE_API_KEY: str = Field(default="")
    APPWRITE_DB_ID: str = Field(default="")
    APPWRITE_LOGIN_CODES_COLLECTION_ID: str = Field(default="")
    APPWRITE_USER_PROFILES_COLLECTION_ID: str = Field(default="")

    # ------------------------------
    # Login codes
    # ------------------------------
    CODE_TTL_MINUTES: int = Field(default=10)
    BCRYPT_ROUNDS: int = Field(default=10)
    LOGIN_CODE_UPSERT: bool = Field(default=False)
    ROLES_POLICY: str = Field(default="overwrite")

    # ------------------------------
    # Auth tokens - Optional, placeholder tokens when SECRET_KEY is empty
    # ------------------------------
    SECRET_KEY: str = Field(default="")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=480)

    # ------------------------------
    # Rate limiting
    # ------------------------------
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    SEND_CODE_RATE_LIMIT: str = Field(default="5/minute")

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def CODE_TTL_MS(self) -> int:
        """Code lifetime in epoch milliseconds."""
        return self.CODE_TTL_MINUTES * 60 * 1000

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
