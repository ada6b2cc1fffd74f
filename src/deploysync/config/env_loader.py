"""Environment variable helpers for configuration files."""

import os
import re
from pathlib import Path

from dotenv import load_dotenv

from deploysync.lib.errors import InvalidConfigError

# ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def load_env_file(path: str | Path | None = None) -> bool:
    """Load a .env file into the process environment without overriding it.

    Args:
        path: Explicit .env path; defaults to searching from the working directory

    Returns:
        True if a file was found and loaded
    """
    if path is None:
        return load_dotenv(override=False)
    return load_dotenv(dotenv_path=path, override=False)


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` references in text.

    Raises:
        InvalidConfigError: If a referenced variable is unset and has no default
    """

    def replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = os.environ.get(name)
        if value is not None:
            return value
        if default is not None:
            return default
        raise InvalidConfigError(
            name, f"Environment variable '{name}' is referenced but not set"
        )

    return ENV_VAR_PATTERN.sub(replace, text)
