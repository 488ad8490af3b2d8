# backend/webpos/config.py
from __future__ import annotations
import os


DEV_SIGNING_SECRET = "dev-signing-secret-change-me-before-deploying"
DEV_ADMIN_PASSWORD = "123456"


class ConfigError(RuntimeError):
    """Raised at startup when the active profile is not safe to run."""


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


class Config:
    ENV_NAME = "base"

    # Token signing key. The default only exists so a laptop checkout boots.
    SIGNING_SECRET = os.environ.get("WEBPOS_SIGNING_SECRET", DEV_SIGNING_SECRET)
    TOKEN_TTL_HOURS = 12

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///webpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Inventory / checkout policy
    ALLOW_BACKORDER = _env_bool("WEBPOS_ALLOW_BACKORDER", False)
    STRICT_TOTALS = _env_bool("WEBPOS_STRICT_TOTALS", True)

    BCRYPT_ROUNDS = int(os.environ.get("WEBPOS_BCRYPT_ROUNDS", "12"))

    # Default administrator created by bootstrap
    ADMIN_USERNAME = os.environ.get("WEBPOS_ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.environ.get("WEBPOS_ADMIN_PASSWORD", DEV_ADMIN_PASSWORD)
    BOOTSTRAP_ON_STARTUP = _env_bool("WEBPOS_BOOTSTRAP", False)

    LOG_LEVEL = os.environ.get("WEBPOS_LOG_LEVEL", "INFO")

    CORS_ORIGINS = _env_list(
        "WEBPOS_CORS_ORIGINS",
        (
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        ),
    )


class DevelopmentConfig(Config):
    ENV_NAME = "development"
    BOOTSTRAP_ON_STARTUP = _env_bool("WEBPOS_BOOTSTRAP", True)


class TestingConfig(Config):
    ENV_NAME = "testing"
    TESTING = True
    SIGNING_SECRET = "testing-signing-secret-0123456789abcdef"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    BOOTSTRAP_ON_STARTUP = False
    ALLOW_BACKORDER = False
    STRICT_TOTALS = True


class ProductionConfig(Config):
    ENV_NAME = "production"
    # No fallbacks: validate_config() rejects missing values.
    SIGNING_SECRET = os.environ.get("WEBPOS_SIGNING_SECRET")
    ADMIN_PASSWORD = os.environ.get("WEBPOS_ADMIN_PASSWORD")


CONFIG_BY_NAME = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config_object(name: str | None = None) -> type[Config]:
    name = (name or os.environ.get("WEBPOS_ENV") or "development").strip().lower()
    try:
        return CONFIG_BY_NAME[name]
    except KeyError:
        raise ConfigError(f"Unknown WEBPOS_ENV profile: {name!r}") from None


def insecure_defaults_in_use(config) -> list[str]:
    """Names of settings still carrying their development placeholder."""
    found = []
    if not config.get("SIGNING_SECRET") or config.get("SIGNING_SECRET") == DEV_SIGNING_SECRET:
        found.append("SIGNING_SECRET")
    if config.get("BOOTSTRAP_ON_STARTUP") and config.get("ADMIN_PASSWORD") in (None, "", DEV_ADMIN_PASSWORD):
        found.append("ADMIN_PASSWORD")
    return found


def validate_config(config) -> None:
    """
    Refuse to start a production profile on development placeholders.

    Development and testing only get a warning (logged by create_app).
    """
    if config.get("ENV_NAME") != "production":
        return

    problems = insecure_defaults_in_use(config)
    if problems:
        raise ConfigError(
            "Production profile requires explicit values for: " + ", ".join(problems)
        )

    if int(config.get("TOKEN_TTL_HOURS", 0)) <= 0:
        raise ConfigError("TOKEN_TTL_HOURS must be positive")
