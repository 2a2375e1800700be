import json
import os
import re
import shutil
from datetime import datetime
from typing import Any, Optional

from osprov.helpers.logger import get_logger
from osprov.helpers.utils import ensure_directory_exists

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class StateFile:
    """
    JSON file holding the driver state of one instance between host calls.
    """

    def __init__(self, instance: str, state_dir: Optional[str] = None):
        """
        Initialize StateFile.

        :param instance: Host-side instance name.
        :param state_dir: Directory of state files. Defaults to $OSPROV_STATEDIR or ./.osprov/state.
        """
        self.state_dir = state_dir or os.environ.get("OSPROV_STATEDIR", "./.osprov/state")
        ensure_directory_exists(self.state_dir)
        self.path = os.path.join(self.state_dir, f"{_UNSAFE_CHARS.sub('_', instance)}.json")

    def load(self) -> dict[str, Any]:
        """
        Load the state map. A corrupted file is backed up and treated as empty.

        :return: The loaded state.
        """
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("Invalid state format: Expected a dictionary.")
            return data
        except (json.JSONDecodeError, ValueError) as e:
            logger.error("Invalid JSON in %s. Starting from empty state. Error: %s", self.path, e)
            timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
            backup_path = f"{self.path}.backup.{timestamp}"
            shutil.copy(self.path, backup_path)
            logger.warning("Backup of corrupted state created at %s.", backup_path)
            return {}

    def save(self, state: dict[str, Any]) -> None:
        """
        Save the state map, removing the file when the state is empty.

        :raises OSError: If there is an error writing to the file.
        """
        if not state:
            self.delete()
            return
        try:
            with open(self.path, "w") as f:
                json.dump(state, f, indent=2)
            logger.debug("State saved to %s.", self.path)
        except OSError as e:
            logger.error("Failed to save state to %s: %s", self.path, e)
            raise

    def delete(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.debug("State file %s removed.", self.path)
