##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Main CLI parser setup for the `oceanscape` command.

This module defines the primary argument parser, its global options (log
level, configuration file) and the registration of every subcommand.
"""

import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from oceanscape import VERSION
from oceanscape.cli.commands import ALL_COMMANDS


DEFAULT_LOG_LEVEL = "INFO"


class HelpParser(ArgumentParser):
    """
    An `ArgumentParser` that prints the help message when the arguments are invalid.

    Methods:
        error: Print the error and the help message, then exit.
    """

    def error(self, message: str):
        """
        Print the error and the help message, then exit with status 2.

        Args:
            message: The error message.
        """
        sys.stderr.write(f"error: {message}\n")
        self.print_help()
        sys.exit(2)


def build_main_parser() -> ArgumentParser:
    """
    Set up the command-line argument parser of Oceanscape.

    Returns:
        An `ArgumentParser` with every subcommand registered.
    """
    parser = HelpParser(
        prog="oceanscape",
        description="Browse the parameters, descriptors and linear models of a sample database.",
        formatter_class=RawDescriptionHelpFormatter,
        epilog="See oceanscape <command> --help for more info",
    )
    parser.add_argument("-v", "--version", action="version", version=VERSION)
    parser.add_argument(
        "-lvl",
        "--level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        help="Set log level: DEBUG, INFO, WARNING, ERROR [Default: %(default)s]",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the oceanscape.yaml configuration file. "
        "[Default: ./oceanscape.yaml, then ~/.oceanscape/oceanscape.yaml]",
    )
    subparsers = parser.add_subparsers(dest="subparsers", required=True)

    for command in ALL_COMMANDS:
        command.add_parser(subparsers)

    return parser
