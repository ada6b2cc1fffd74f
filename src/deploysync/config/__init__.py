"""Configuration loading for deploysync."""

from deploysync.config.env_loader import load_env_file, substitute_env_vars
from deploysync.config.loader import load_config

__all__ = ["load_config", "load_env_file", "substitute_env_vars"]
