##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
CLI module printing how a parameter is derived.

This module defines the `ModelCommand` class, which handles the `model`
subcommand: `oceanscape model PARAMETER` prints the linear model terms or the
components of the parameter.
"""

from argparse import ArgumentParser, Namespace

from oceanscape.cli.commands.command_entry_point import CommandEntryPoint
from oceanscape.display import format_derivation


class ModelCommand(CommandEntryPoint):
    """
    Handles the `model` CLI command.

    Methods:
        add_parser: Adds the `model` command to the CLI parser.
        process_command: Prints the derivation of a parameter.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `model` command parser to the CLI argument parser.

        Parameters:
            subparsers: The subparsers object to which the `model` command parser will be added.
        """
        model: ArgumentParser = subparsers.add_parser(
            "model", help="Show the linear model or the components of a parameter."
        )
        model.set_defaults(func=self.process_command)
        model.add_argument("parameter", type=str, help="The name of the parameter.")

    def process_command(self, args: Namespace):
        """
        Print the derivation of the parameter named by `args.parameter`.

        Args:
            args: Parsed CLI arguments.
        """
        with self.open_database(args) as database:
            print(format_derivation(database.get_parameter(args.parameter)))
