"""Conversion of pydantic validation failures into configuration errors."""

from collections.abc import Mapping

from pydantic import ValidationError as PydanticValidationError

from deploysync.lib.errors import InvalidConfigError


def config_error_from_validation(
    exc: PydanticValidationError,
    env_var_map: Mapping[str, tuple[str, ...]],
) -> InvalidConfigError:
    """Build an InvalidConfigError naming every failing setting.

    The first failing setting becomes the error's ``field``. Settings that
    can also be given through the environment name their variable, so a bad
    ``DEPLOYSYNC_*`` value is easy to trace.

    Args:
        exc: Validation error raised for ``ServiceConfig``
        env_var_map: Environment variable name to config path mapping

    Example:
        ``github.poll_interval: Input should be a valid number
        (DEPLOYSYNC_POLL_INTERVAL)``
    """
    env_names = {path: name for name, path in env_var_map.items()}
    field = ""
    messages: list[str] = []

    for error in exc.errors():
        path = tuple(str(item) for item in error.get("loc", ()))
        setting = ".".join(path) or "config"
        field = field or setting

        message = f"{setting}: {error.get('msg', 'invalid value')}"
        env_name = env_names.get(path)
        if env_name:
            message = f"{message} ({env_name})"
        messages.append(message)

    if not messages:
        return InvalidConfigError("config", "validation failed")
    return InvalidConfigError(field, "; ".join(messages))
