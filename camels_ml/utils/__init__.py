"""Utilities module."""

from .helpers import (
    create_experiment_name,
    ensure_directory,
    format_duration,
    load_yaml_to_dict,
    save_dict_to_yaml,
    validate_file_exists,
)
from .logger import set_log_level, setup_logger

__all__ = [
    "create_experiment_name",
    "ensure_directory",
    "format_duration",
    "load_yaml_to_dict",
    "save_dict_to_yaml",
    "validate_file_exists",
    "set_log_level",
    "setup_logger",
]
