"""Filesystem helpers for configuration files.

Usage:
    from epl_render.utils import fs
    data = fs.load_yaml("label.yaml")          # {} for an empty file
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML document whose root is a mapping.

    Parameters
    ----------
    path : str | Path
        File to read.

    Returns
    -------
    dict
        Parsed mapping; an empty or comment-only file gives ``{}``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the file is not valid YAML or its root is not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(
            f"YAML root must be a mapping in {path}, got {type(data).__name__}"
        )
    return data
