##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
CLI module listing the records of a table of the sample database.

This module defines the `ListCommand` class, which handles the `list`
subcommand: `oceanscape list {parameters,operations,positions,descriptors}`.
"""

import logging
from argparse import ArgumentParser, Namespace

from oceanscape.cli.commands.command_entry_point import CommandEntryPoint
from oceanscape.display import TABLE_LAYOUTS, format_entries


LOG = logging.getLogger("oceanscape")


class ListCommand(CommandEntryPoint):
    """
    Handles the `list` CLI command.

    Methods:
        add_parser: Adds the `list` command to the CLI parser.
        process_command: Prints the records of the requested table.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `list` command parser to the CLI argument parser.

        Parameters:
            subparsers: The subparsers object to which the `list` command parser will be added.
        """
        list_entries: ArgumentParser = subparsers.add_parser("list", help="List the records of a table.")
        list_entries.set_defaults(func=self.process_command)
        list_entries.add_argument("kind", choices=list(TABLE_LAYOUTS), help="The table to list.")

    def process_command(self, args: Namespace):
        """
        Print the records of the table named by `args.kind`.

        Args:
            args: Parsed CLI arguments.
        """
        with self.open_database(args) as database:
            getters = {
                "parameters": database.get_parameters,
                "operations": database.get_operations,
                "positions": database.get_relative_positions,
                "descriptors": database.get_descriptors,
            }
            entries = getters[args.kind]()
            LOG.debug(f"Listing {len(entries)} {args.kind}.")
            print(format_entries(args.kind, entries))
