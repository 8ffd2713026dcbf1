#!/usr/bin/env python3

"""
z64diff

Finds out what has moved or changed inside a romhack. Compares two versions
of a ROM through their dmadata file table and reports every file that was
relocated, resized, or modified, plus any change outside the indexed files.

Usage:
    z64diff old.z64 new.z64
"""

import os
import sys
import argparse
import logging
from datetime import datetime

from framework import Image, DiffContext
from report import StreamReportSink, CollectingReportSink
from steps import default_pipeline
from errors import Z64DiffError, ArgumentCountError, LoadError, OutputError

logger = logging.getLogger("z64diff")


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentCountError(f"{message}\nargs: z64diff old.z64 new.z64")


def parse_args(argv=None):
    parser = ArgumentParser(description="Find out what has moved or changed inside a romhack.")
    parser.add_argument("old_image", help="Path to the original ROM")
    parser.add_argument("new_image", help="Path to the modified ROM")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Also report files that did not change")
    parser.add_argument("-o", "--output",
                        help="Write the report to this file instead of stderr")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log", action="store_true", help="Also write the log to a timestamped file in logs/")
    return parser.parse_args(argv)


def setup_logging(debug=False, log_to_file=False):
    """Set up logging configuration"""
    log_level = logging.DEBUG if debug else logging.WARNING

    log_format = '%(asctime)s - %(levelname)s - %(message)s'

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(console_handler)

    if log_to_file:
        log_dir = os.path.join(os.getcwd(), 'logs')
        os.makedirs(log_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"z64diff_{timestamp}.log")

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(file_handler)

        logging.info(f"Logging to file: {log_file}")

    return logger


def load_image(path):
    """
    Read a ROM file in full.

    Returns:
        Image or None: The loaded image, or None if the file is unreadable or empty
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.debug(f"Error loading ROM {path}: {e}")
        return None

    if not data:
        logger.debug(f"ROM {path} is empty")
        return None

    return Image(path, data)


def load_images(old_path, new_path):
    """Load both ROMs, reporting every path that failed before giving up."""
    old = load_image(old_path)
    new = load_image(new_path)

    failed = [path for path, image in ((old_path, old), (new_path, new)) if image is None]
    if failed:
        raise LoadError(failed)

    return old, new


def compare_images(old, new, sink, verbosity=0):
    """
    Compare two loaded images and stream the results to `sink`.

    Args:
        old, new (Image): The original and modified ROM
        sink (ReportSink): Receives the located table, findings, and summary
        verbosity (int): 1 or more also reports unchanged files

    Returns:
        DiffContext: The finished context, for access to the steps' results

    Raises:
        Z64DiffError: If the images cannot be compared
    """
    context = DiffContext(old, new, sink, verbosity=verbosity)
    context.run_pipeline(default_pipeline(), log_function=logger.debug)
    return context


def write_report(path, collected):
    """Write a finished comparison to a text file."""
    try:
        with open(path, "w") as f_out:
            collected.replay(StreamReportSink(f_out))
    except OSError as e:
        raise OutputError(path, e)


def run(args):
    old, new = load_images(args.old_image, args.new_image)
    verbosity = 1 if args.verbose else 0

    if args.output:
        # Nothing is written unless the whole comparison succeeds
        collected = CollectingReportSink()
        compare_images(old, new, collected, verbosity)
        write_report(args.output, collected)
        logger.info(f"Report saved to: {args.output}")
    else:
        compare_images(old, new, StreamReportSink(), verbosity)


def main(argv=None):
    """Main entry point. Returns the process exit code."""
    try:
        args = parse_args(argv)
        setup_logging(debug=args.debug, log_to_file=args.log)
        run(args)
    except Z64DiffError as e:
        sys.stderr.write(f"{e}\n")
        return e.exit_code
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
