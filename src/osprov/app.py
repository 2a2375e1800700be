import argparse
import json
import sys
from typing import Optional

from osprov import __version__
from osprov.config import ConfigManager
from osprov.console import print_error, print_info, print_success
from osprov.driver import OpenStackDriver
from osprov.exceptions import OsprovError
from osprov.helpers.logger import get_logger, setup_logging
from osprov.helpers.utils import load_json_data
from osprov.state import StateFile

logger = get_logger(__name__)

ACTIONS = ("create", "destroy")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osprov", description="OpenStack provisioning driver for test-orchestration hosts"
    )
    parser.add_argument("action", choices=ACTIONS, help="Action to perform.")
    parser.add_argument("-i", "--instance", required=True, help="Host-side instance name.")
    parser.add_argument("-c", "--config", help="Path to the driver settings file.")
    parser.add_argument("--data", help="JSON string of configuration overrides.")
    parser.add_argument("--state-dir", help="Directory holding per-instance state files.")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...).")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run_action(driver: OpenStackDriver, action: str, state_file: StateFile) -> dict:
    """
    Run a driver action against the persisted state.

    The state is saved even when the action fails, so that a server created
    before the failure can still be destroyed later.
    """
    state = state_file.load()
    try:
        if action == "create":
            driver.create(state)
        elif action == "destroy":
            driver.destroy(state)
        else:
            raise ValueError(f"Unsupported action: {action}")
    finally:
        state_file.save(state)
    return state


def report_error(error: Exception) -> int:
    """Print the JSON error response for the host and return the exit code."""
    response = error.to_dict() if isinstance(error, OsprovError) else {"error": str(error)}
    print_error(response["error"])
    print(json.dumps(response, indent=2))
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the OpenStack driver.
    """
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    try:
        # Set up logging from the same settings file as the driver
        setup_logging(log_level=args.log_level, settings_file=config_manager.config_file)
    except (OSError, ValueError) as e:
        # logging is unusable, report without it
        return report_error(e)

    try:
        overrides = load_json_data(args.data) if args.data else None
        config = config_manager.load(overrides)
        state_file = StateFile(args.instance, args.state_dir)
        driver = OpenStackDriver(config, args.instance)

        print_info(f"Running {args.action} for instance <{args.instance}>")
        state = run_action(driver, args.action, state_file)

        # Print the response as JSON
        print(json.dumps(state, indent=2))
        print_success(f"{args.action} finished for instance <{args.instance}>")
        return 0

    except OsprovError as e:
        logger.error("Action %s failed: %s", args.action, e.message)
        return report_error(e)
    except Exception as e:
        logger.error("An error occurred: %s", e, exc_info=True)
        return report_error(e)


def cli_main() -> None:
    """Entry point function for console scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
