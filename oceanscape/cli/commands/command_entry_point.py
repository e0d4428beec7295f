##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Defines the abstract base class of the Oceanscape CLI commands.

Every command registers its own parser and processes the parsed arguments.
Commands reading the database open it through `open_database`, so that the
`--config` option is honored the same way everywhere.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.db_scripts.sample_database import SampleDatabase


class CommandEntryPoint(ABC):
    """
    Abstract base class for an Oceanscape CLI command.

    Methods:
        add_parser: Adds the parser of the command to the main `ArgumentParser`.
        process_command: Executes the logic of the command.
        open_database: Opens the sample database described by the parsed arguments.
    """

    @abstractmethod
    def add_parser(self, subparsers: ArgumentParser):
        """Add the parser for this command to the main `ArgumentParser`."""
        raise NotImplementedError("Subclasses of `CommandEntryPoint` must implement an `add_parser` method.")

    @abstractmethod
    def process_command(self, args: Namespace):
        """Execute the logic for this CLI command."""
        raise NotImplementedError("Subclasses of `CommandEntryPoint` must implement a `process_command` method.")

    @staticmethod
    def open_database(args: Namespace) -> SampleDatabase:
        """
        Open the sample database configured by `--config`, or by the default
        configuration file when the option is absent.

        Args:
            args: Parsed CLI arguments.

        Returns:
            An open `SampleDatabase`, to be closed by the caller.
        """
        return SampleDatabase(DatabaseConfig.load(getattr(args, "config", None)))
