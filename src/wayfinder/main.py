"""
WAYFINDER - Forensic extraction of AlpineQuest GPS data
Main Entry Point
"""

import os
import sys
import logging
import platform
from datetime import datetime
from pathlib import Path

from wayfinder import WAYFINDER_VERSION, WAYFINDER_BUILD_DATE


class CustomFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created)
        return dt.strftime('[%Y-%B-%d %H:%M:%S]')

    def format(self, record):
        record.asctime = self.formatTime(record)
        message = f"{record.asctime} [{record.levelname}] {record.name} - {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(log_dir="logs", verbose=False):
    """Setup logging that appends to a single log file and echoes to the console"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(
        log_dir / 'wayfinder.log',
        mode='a',
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(CustomFormatter())

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(CustomFormatter())

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("="*80)
    logger.info(f"WAYFINDER v{WAYFINDER_VERSION} - Forensic extraction of AlpineQuest GPS data")
    logger.info(f"Build Date: {WAYFINDER_BUILD_DATE}")
    logger.info(f"Python Version: {sys.version}")
    logger.info(f"Platform: {platform.platform()}")
    logger.info(f"Process ID: {os.getpid()}")
    logger.info("="*80)

    return logger


def main(argv=None):
    """Main entry point for WAYFINDER"""
    from wayfinder.cli.cli_interface import get_cli_arguments, run_cli

    args = get_cli_arguments(argv)
    logger = setup_logging(args.log_dir, args.verbose)
    logger.info(f"Command line arguments: {sys.argv[1:] if argv is None else argv}")

    try:
        exit_code = run_cli(args)
    except Exception as e:
        logger.critical(f"Unhandled exception in main: {e}", exc_info=True)
        print(f"Critical error: {e}")
        exit_code = 1

    logger.info("WAYFINDER main() completed")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
