import os
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from osprov.config.driver_config import DriverConfig
from osprov.exceptions import ConfigurationError
from osprov.helpers.logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "OSPROV"
DEFAULT_CONFIG_FILENAME = "osprov_config.json"


class ConfigManager:
    """
    Loads the driver configuration.

    Values are layered, lowest priority first: model defaults, the settings
    file, ``OSPROV_*`` environment variables, explicit overrides.
    """

    def __init__(self, config_file: Optional[str] = None) -> None:
        self.config_file = config_file or self._default_config_file()

    @staticmethod
    def _default_config_file() -> str:
        """
        Resolve the settings file path from the environment or defaults.

        :return: Path of the settings file, which may not exist.
        """
        confdir = os.environ.get("OSPROV_CONFDIR", os.getcwd())
        return os.environ.get("OSPROV_CONFIG_PATH", os.path.join(confdir, DEFAULT_CONFIG_FILENAME))

    def _read_settings(self) -> dict[str, Any]:
        if not os.path.exists(self.config_file):
            logger.debug("Configuration file %s not found, using environment only", self.config_file)
            settings_files: list[str] = []
        else:
            settings_files = [self.config_file]

        # JSON and TOML parse errors surface as ValueError
        try:
            settings = Dynaconf(
                settings_files=settings_files,
                envvar_prefix=ENV_PREFIX,
                load_dotenv=True,
            )
            raw = settings.as_dict()
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid configuration file {self.config_file}: {e}"
            ) from e

        return {str(key).lower(): value for key, value in raw.items()}

    def load(self, overrides: Optional[dict[str, Any]] = None) -> DriverConfig:
        """
        Build a validated DriverConfig.

        :param overrides: Values taking precedence over file and environment.
        :return: The validated configuration.
        :raises ConfigurationError: If required values are missing or invalid.
        """
        data = self._read_settings()
        if overrides:
            data.update(overrides)

        try:
            config = DriverConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid driver configuration: {e}") from e

        logger.info("Configuration loaded successfully from %s", self.config_file)
        return config
