##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
SQLite connection context manager for Oceanscape.

This module defines the `SQLiteConnection` class, which opens a configured SQLite
connection to the sample database and guarantees it is closed on exit.
"""

import logging
import sqlite3
from pathlib import Path
from types import TracebackType
from typing import Type

from oceanscape.exceptions import CatalogError


LOG = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class SQLiteConnection:
    """
    Context manager for establishing and safely closing a SQLite database connection.

    Connections are created with:
    - Foreign key constraint enforcement
    - Dictionary-style row access via `sqlite3.Row`

    Attributes:
        db_path (str): The database file, or `:memory:`.
        conn (sqlite3.Connection): The active SQLite connection used within the context.

    Methods:
        open: Opens and configures the SQLite connection.
        close: Closes the SQLite connection.
        __enter__: Opens the connection when entering the context.
        __exit__: Closes the connection when exiting the context.
    """

    def __init__(self, db_path: str):
        """
        Initialize the SQLiteConnection context manager.

        Args:
            db_path: The path to the SQLite database file.
        """
        self.db_path: str = db_path
        self.conn: sqlite3.Connection = None

    def open(self) -> sqlite3.Connection:
        """
        Open and configure the connection.

        Returns:
            A sqlite connection.

        Raises:
            CatalogError: If the database can't be opened.
        """
        if self.db_path != MEMORY_DATABASE:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        LOG.debug(f"Opening SQLite database at {self.db_path}.")
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as exc:
            raise CatalogError(f"Could not open the sample database at {self.db_path}: {exc}") from exc

        # This enables name-based access to columns
        self.conn.row_factory = sqlite3.Row

        return self.conn

    def close(self):
        """Close the connection if it's still open."""
        if self.conn:
            self.conn.close()
            self.conn = None
            LOG.debug(f"Closed SQLite database at {self.db_path}.")

    def __enter__(self) -> sqlite3.Connection:
        """
        Enters the runtime context related to this object and creates a sqlite connection.

        Returns:
            A sqlite connection.
        """
        return self.open()

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        """
        Exits the runtime context and performs cleanup.

        Args:
            exc_type: The exception type raised, if any.
            exc_value: The exception instance raised, if any.
            traceback: The traceback object, if an exception was raised.
        """
        self.close()
