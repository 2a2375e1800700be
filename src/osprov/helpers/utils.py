import json
import os
from typing import Any

from osprov.helpers.logger import get_logger

logger = get_logger(__name__)


def ensure_directory_exists(path: str) -> None:
    """
    Ensure that a directory exists. If it does not exist, create it.

    Args:
        path (str): The directory path to check or create.
    """
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)
        logger.debug("Created directory: %s", path)


def load_json_data(json_str: str) -> dict[str, Any]:
    """
    Load a JSON object from a string.

    Args:
        json_str (str): JSON string input.

    Returns:
        dict: Parsed JSON object.

    Raises:
        ValueError: If the input is not valid JSON or not a JSON object.
    """
    data = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object.")
    return data
