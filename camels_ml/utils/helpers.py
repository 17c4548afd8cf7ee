"""Utility functions and helpers."""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, create if it doesn't.

    Args:
        path: Directory path to ensure

    Returns:
        The directory path

    Examples:
        >>> output_dir = ensure_directory(Path("outputs/selection"))
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_dict_to_yaml(data: Dict[str, Any], path: Path) -> None:
    """Save dictionary to YAML file.

    Args:
        data: Dictionary to save
        path: Output file path

    Examples:
        >>> save_dict_to_yaml({"max_depth": 6}, Path("best_params.yaml"))
    """
    ensure_directory(path.parent)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def load_yaml_to_dict(path: Path) -> Dict[str, Any]:
    """Load YAML file to dictionary.

    Args:
        path: YAML file path

    Returns:
        Dictionary with loaded data (empty for an empty file)
    """
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string.

    Examples:
        >>> format_duration(3661.5)
        '1h 1m 1.5s'
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


def create_experiment_name(
    base_name: str = "camels_selection",
    include_timestamp: bool = True,
    extra_tags: Optional[List[str]] = None,
) -> str:
    """Create a unique experiment name.

    Examples:
        >>> create_experiment_name("selection", include_timestamp=False, extra_tags=["q_mean"])
        'selection_q_mean'
    """
    parts = [base_name]

    if extra_tags:
        parts.extend(extra_tags)

    if include_timestamp:
        parts.append(datetime.now().strftime("%Y%m%d_%H%M%S"))

    return "_".join(parts)


def validate_file_exists(path: Path, description: str = "File") -> None:
    """Validate that a file exists and raise informative error if not.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the path is not a regular file
    """
    if not path.exists():
        raise FileNotFoundError(f"{description} not found: {path}")

    if not path.is_file():
        raise ValueError(f"{description} is not a file: {path}")
