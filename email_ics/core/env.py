import os

from dotenv import find_dotenv, load_dotenv

ENV_FILE_VAR = "EMAIL_ICS_ENV_FILE"
STRICT_VALIDATION_VAR = "EMAIL_ICS_STRICT_VALIDATION"

_TRUTHY = {"true", "1", "yes", "on"}


def load_env(env_file: str | None = None) -> bool:
    """Load settings from a dotenv file without overriding the process environment.

    The file is ``env_file``, else ``$EMAIL_ICS_ENV_FILE``, else the nearest
    ``.env`` above the working directory. Returns False when nothing was found.
    """
    path = env_file or os.getenv(ENV_FILE_VAR) or find_dotenv(usecwd=True)
    if not path:
        return False
    return load_dotenv(path, override=False)


def env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def is_strict_validation_enabled() -> bool:
    return env_flag(STRICT_VALIDATION_VAR)
