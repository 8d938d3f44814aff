"""
Command-line interface for iOS CI convention linting.

Usage:
    ios-ci-lint
    ios-ci-lint --format json
    ios-ci-lint --check-profile ad_hoc.mobileprovision
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .api import check_profile, lint_project
from .config import LintConfig
from .formatter import get_formatter

# Set up logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main(args: list[str] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        args: Command-line arguments. Uses sys.argv if None.

    Returns:
        Exit code: 0 for success, 1 for lint errors, 2 for other errors.
    """
    parser = argparse.ArgumentParser(
        prog="ios-ci-lint",
        description="Report if an iOS project is missing or deviating from CI conventions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   Lint the current repository
  %(prog)s -C path/to/repo                   Lint another repository
  %(prog)s --format json                     Machine-readable output
  %(prog)s -W                                Fail on warnings too
  %(prog)s --check-profile *.mobileprovision Classify provisioning profiles
        """,
    )

    parser.add_argument(
        "--directory",
        "-C",
        type=Path,
        help="Repository root to lint (default: current directory)",
    )

    parser.add_argument(
        "--check-profile",
        nargs="+",
        metavar="FILE",
        help="Classify provisioning profile files and exit",
    )

    parser.add_argument(
        "--warnings-as-errors",
        "-W",
        action="store_true",
        help="Treat warnings as errors",
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only show errors, suppress warnings and the setup checklist",
    )

    parser.add_argument(
        "--no-colour",
        action="store_true",
        help="Disable ANSI colour output",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parsed = parser.parse_args(args)

    # Set log level
    if parsed.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    formatter_kwargs = {}
    if parsed.format == "text":
        formatter_kwargs["colour"] = not parsed.no_colour
        formatter_kwargs["quiet"] = parsed.quiet
    formatter = get_formatter(parsed.format, **formatter_kwargs)

    config = LintConfig.from_env()

    # Handle profile classification
    if parsed.check_profile:
        profiles = [(path, check_profile(path, config=config)) for path in parsed.check_profile]
        print(formatter.format_profiles(profiles))
        return 0 if all(profile.is_valid for _, profile in profiles) else 1

    try:
        result = lint_project(parsed.directory, config=config)
    except Exception as e:
        logger.exception("Unexpected error during linting")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(formatter.format_result(result))

    if not result.is_valid:
        return 1
    if parsed.warnings_as_errors and result.warning_count > 0:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
