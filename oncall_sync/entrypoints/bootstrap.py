# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Bootstrap — create the teams, users and schedules of a YAML file in on-call.

Usage: oncall-bootstrap -f configs/oncall.yaml   (or CONFIG_FILE=...)
"""

import argparse
import sys

from oncall_sync.core.config import settings
from oncall_sync.core.dependencies import build_client
from oncall_sync.core.errors import AggregateError, InvalidEndpoint, LoginFailed
from oncall_sync.core.logging import get_logger
from oncall_sync.services.config_loader import ConfigError, load_config
from oncall_sync.services.reconciler import Reconciler

logger = get_logger("oncall-bootstrap")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("-f", dest="filename", default=settings.CONFIG_FILE,
                        help="yaml config file to read oncall teams from")
    args = parser.parse_args(argv)
    if not args.filename:
        logger.error("filename must be provided")
        return 1

    try:
        config = load_config(args.filename)
    except ConfigError as exc:
        logger.error("Error loading config: %s", exc)
        return 1
    try:
        client = build_client(settings)
    except (LoginFailed, InvalidEndpoint) as exc:
        logger.error("Could not log in to %s: %s", settings.ONCALL_URL, exc)
        return 1

    try:
        report = Reconciler(client).create_entities(config)
    finally:
        client.session.close()
    try:
        report.raise_for_failures()
    except AggregateError as exc:
        logger.error("Failed to create entities: %s", exc)
        return 1
    logger.info("Finished loading configs from %s", args.filename)
    return 0


if __name__ == "__main__":
    sys.exit(main())
