from typing import List, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotConfiguredError(RuntimeError):
    """Required secret material is missing at startup"""


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Secrets (each verifier fails closed when its secret is unset)
    BOT_TOKEN: Optional[SecretStr] = None
    STRIPE_WEBHOOK_SECRET: Optional[SecretStr] = None
    PAYSTACK_SECRET_KEY: Optional[SecretStr] = None

    # Verification
    STRIPE_WEBHOOK_TOLERANCE: int = 300
    INIT_DATA_MAX_AGE: int = 86400
    SIGNATURE_DEV_MODE: bool = False
    REQUIRE_SECRETS: bool = False

    # Database Configuration
    DB_ENABLED: bool = True
    DB_CREATE_TABLES: bool = False
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "miniapp"
    DB_USER: str = "postgres"
    DB_PASSWORD: SecretStr = SecretStr("")

    # FastAPI Configuration
    ORIGIN: str = ""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = ""
    LOG_BACKUP_COUNT: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="UTF-8",
        extra="ignore"
    )

    @staticmethod
    def _reveal(value: Optional[SecretStr]) -> Optional[str]:
        if value is None:
            return None
        return value.get_secret_value() or None

    @property
    def bot_token(self) -> Optional[str]:
        return self._reveal(self.BOT_TOKEN)

    @property
    def stripe_webhook_secret(self) -> Optional[str]:
        return self._reveal(self.STRIPE_WEBHOOK_SECRET)

    @property
    def paystack_secret_key(self) -> Optional[str]:
        return self._reveal(self.PAYSTACK_SECRET_KEY)

    @property
    def init_data_max_age(self) -> Optional[int]:
        """Maximum initData age in seconds, None when the check is disabled"""
        return self.INIT_DATA_MAX_AGE if self.INIT_DATA_MAX_AGE > 0 else None

    @property
    def cors_origins(self) -> List[str]:
        if self.ORIGIN:
            return [self.ORIGIN]

        return [
            "https://telegram.org",
            "https://web.telegram.org",
            "https://t.me"
        ]

    def missing_secrets(self) -> List[str]:
        """Names of secret settings that are unset or empty"""
        secrets = {
            "BOT_TOKEN": self.bot_token,
            "STRIPE_WEBHOOK_SECRET": self.stripe_webhook_secret,
            "PAYSTACK_SECRET_KEY": self.paystack_secret_key,
        }
        return [name for name, value in secrets.items() if not value]

    def secret_values(self) -> List[str]:
        """Configured secret values, for masking in logs"""
        values = [
            self.bot_token,
            self.stripe_webhook_secret,
            self.paystack_secret_key,
            self.DB_PASSWORD.get_secret_value(),
        ]
        return [value for value in values if value]

    def ensure_configured(self) -> None:
        """
        Fail startup when secrets are required but missing

        Raises:
            NotConfiguredError: If REQUIRE_SECRETS is set, dev mode is off
                and at least one secret is missing
        """
        missing = self.missing_secrets()

        if missing and self.REQUIRE_SECRETS and not self.SIGNATURE_DEV_MODE:
            raise NotConfiguredError(f"Missing required secrets: {', '.join(missing)}")


settings = Settings()


def get_settings() -> Settings:
    """Settings dependency (overridable in tests)"""
    return settings
