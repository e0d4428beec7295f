##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
A prepared query bound to one connection, yielding at most one open cursor at a time.

Some database drivers can't hold two result sets open on the same statement.
`Statement` enforces that rule for every driver: executing a statement whose
previous cursor is still being iterated raises `CursorBusyError` instead of
silently opening a second cursor. Tables that need to issue more queries
while processing rows must therefore finish (and close) the current cursor
first.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator

from oceanscape.exceptions import CatalogError, CursorBusyError


LOG = logging.getLogger(__name__)


class Statement:
    """
    A parameterized SQL query executed through a single cursor.

    Attributes:
        connection: The connection the query runs on.
        sql: The SQL text, with `?` placeholders.
        table_name: The table the query reads, for error messages.

    Methods:
        execute: Context manager running the query and yielding its rows.
        close: Release the statement.
    """

    def __init__(self, connection: sqlite3.Connection, sql: str, table_name: str = None):
        """
        Args:
            connection: The connection the query runs on.
            sql: The SQL text, with `?` placeholders.
            table_name: The table the query reads, for error messages.
        """
        self.connection = connection
        self.sql = sql
        self.table_name = table_name
        self._cursor: sqlite3.Cursor = None
        self._closed = False

    def __repr__(self) -> str:
        return f"Statement(table={self.table_name!r}, sql={self.sql!r})"

    @property
    def is_open(self) -> bool:
        """True while a cursor of this statement is being iterated."""
        return self._cursor is not None

    @property
    def closed(self) -> bool:
        """True once `close` has been called."""
        return self._closed

    @contextmanager
    def execute(self, *params: Any) -> Iterator[Iterator[sqlite3.Row]]:
        """
        Run the query and yield an iterator over its rows. The cursor is closed
        when the context exits, whether or not every row was consumed.

        Args:
            params: The values bound to the `?` placeholders.

        Yields:
            An iterator of rows.

        Raises:
            CursorBusyError: If a cursor of this statement is already open.
            CatalogError: If the statement is closed or the query fails.
        """
        if self._closed:
            raise CatalogError(f"Statement on '{self.table_name}' is closed.", self.table_name)
        if self._cursor is not None:
            raise CursorBusyError(
                f"A cursor is already open on the statement for '{self.table_name}'.", self.table_name
            )

        LOG.debug(f"Executing query on '{self.table_name}': {self.sql} with params {params}")
        try:
            self._cursor = self.connection.execute(self.sql, params)
        except sqlite3.Error as exc:
            raise CatalogError(f"Query on '{self.table_name}' failed: {exc}", self.table_name) from exc

        try:
            yield self._iterate(self._cursor)
        finally:
            cursor, self._cursor = self._cursor, None
            cursor.close()

    def _iterate(self, cursor: sqlite3.Cursor) -> Iterator[sqlite3.Row]:
        try:
            yield from cursor
        except sqlite3.Error as exc:
            raise CatalogError(f"Reading rows of '{self.table_name}' failed: {exc}", self.table_name) from exc

    def close(self):
        """Release the statement, closing any cursor still open."""
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
        self._closed = True
