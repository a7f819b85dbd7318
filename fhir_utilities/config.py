import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "INR")
    PROFILE_BASE_URL: str = os.getenv(
        "PROFILE_BASE_URL",
        "https://nrces.in/ndhm/fhir/r4/StructureDefinition",
    )
    # When set, soft constraint violations reject the build instead of
    # being repaired with a warning.
    STRICT_CONSTRAINTS: bool = _env_flag("STRICT_CONSTRAINTS")


settings = Settings()
