##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Oceanscape CLI Commands Package.

Modules:
    command_entry_point: Defines the `CommandEntryPoint` base class of every command.
    list_entries: Implements the `list` command, printing the records of a table.
    model: Implements the `model` command, printing how a parameter is derived.
"""

from oceanscape.cli.commands.list_entries import ListCommand
from oceanscape.cli.commands.model import ModelCommand


# Keep these in alphabetical order
ALL_COMMANDS = [
    ListCommand(),
    ModelCommand(),
]
