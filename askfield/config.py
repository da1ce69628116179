"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Secret key for signing session tokens
        algorithm: Algorithm used for JWT encoding (typically HS256)
        session_token_expire_days: Session token validity window in days
        verification_token_expire_hours: Email verification token validity window
        bcrypt_rounds: Work factor for password hashing
        require_demographics_at_registration: Whether demographic and document
            fields are mandatory at stage 1 instead of profile completion

        # Email settings
        mail_server: SMTP server hostname (email delivery disabled when unset)
        mail_port: SMTP server port
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_from_name: Display name of the sender
        mail_starttls: Whether to use STARTTLS
        mail_timeout: SMTP connection timeout in seconds

        # Frontend settings
        frontend_url: URL of the frontend application

        # Server settings
        host, port: Bind address for the development server
        debug: Enables auto-reload and debug logging
    """
    app_name: str = "Askfield"

    # Database settings
    database_url: str = "sqlite:///./askfield.db"

    # Session token settings
    secret_key: str
    algorithm: str = "HS256"
    session_token_expire_days: int = 30

    # Verification settings
    verification_token_expire_hours: int = 24
    bcrypt_rounds: int = 10
    require_demographics_at_registration: bool = False

    # Email settings
    mail_server: Optional[str] = None
    mail_port: int = 587
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_from_name: str = "Askfield"
    mail_starttls: bool = True
    mail_timeout: int = 30

    # Frontend settings
    frontend_url: str = "http://localhost:3000"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """
    Settings dependency - Builds the settings once per process.

    Tests override this dependency instead of mutating environment variables
    after startup.

    Returns:
        Settings: Application settings
    """
    return Settings()
