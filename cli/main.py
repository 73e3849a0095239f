"""Entry point for the ``lanshare`` command."""

import argparse
import os
from pathlib import Path

from common.logging_config import setup_logging
from cli.commands import init_client
from cli.config import DEFAULT_CONFIG_PATH, Config
from cli.repl import repl_loop


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lanshare", description="Interactive client for a LanShare hub")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"config file to use (default: {DEFAULT_CONFIG_PATH})",
    )
    return parser


def main(argv=None) -> None:
    args = build_arg_parser().parse_args(argv)
    logger = setup_logging('cli', log_level='DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'WARNING'))

    client = init_client(Config(args.config))
    logger.info(f"CLI starting [hub={client.config.get_base_url()}]")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        client.close()
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
