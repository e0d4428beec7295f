##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module defines the `Table` base class shared by every table of the sample database.

A table holds one prepared `Statement` at a time over a shared connection, and
serializes its public methods on a re-entrant lock. Tables that build child
tables hand them their own lock, so a whole resolution graph (parameters,
descriptors, linear models, ...) is serialized on a single lock and can be
closed safely while another thread queries it.
"""

import logging
import sqlite3
import threading
from abc import ABC
from types import TracebackType
from typing import ClassVar, Optional, Type

from oceanscape.backends.sqlite.statement import Statement
from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.query_builder import SelectQuery
from oceanscape.exceptions import CatalogError, CursorBusyError, InvalidQueryError


LOG = logging.getLogger(__name__)


class Table(ABC):
    """
    Base class of the tables of the sample database.

    Attributes:
        table_name: A human readable table name, used in messages.
        query_key: The configuration key of the table's query.
        connection: The connection the table queries.
        config: The database configuration.
        statement: The current prepared statement, or None.

    Methods:
        close: Release the statement and any resources owned by the table.
    """

    table_name: ClassVar[str] = "Table"
    query_key: ClassVar[Optional[QueryKey]] = None

    def __init__(self, connection: sqlite3.Connection, config: DatabaseConfig, lock: threading.RLock = None):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            lock: The lock to serialize on. Tables created on behalf of another
                table share that table's lock.
        """
        self.connection = connection
        self.config = config
        self.statement: Optional[Statement] = None
        self._lock = lock if lock is not None else threading.RLock()
        self._closed = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(closed={self._closed})"

    def __enter__(self) -> "Table":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()

    @property
    def closed(self) -> bool:
        """True once `close` has been called."""
        return self._closed

    @property
    def query(self) -> SelectQuery:
        """The configured query of this table."""
        return self.config.get_query(self.query_key)

    def _check_open(self):
        if self._closed:
            raise CatalogError(f"Table '{self.table_name}' is closed.", self.table_name)

    def _prepare(self, sql: str) -> Statement:
        """
        Replace the current statement with one running `sql`.

        Args:
            sql: The SQL text.

        Returns:
            The new statement.

        Raises:
            CursorBusyError: If the current statement still has an open cursor.
        """
        if self.statement is not None:
            if self.statement.is_open:
                raise CursorBusyError(
                    f"Can't replace the statement of '{self.table_name}' while its cursor is open.", self.table_name
                )
            self.statement.close()
        self.statement = Statement(self.connection, sql, self.table_name)
        return self.statement

    def _keyed_statement(self) -> Statement:
        """
        Get the statement filtering the table's query on its key column,
        preparing it on first use.

        Returns:
            The statement, with one `?` parameter.

        Raises:
            CatalogError: If the query has no key column.
        """
        if self.statement is None:
            try:
                sql = self.query.render_keyed()
            except InvalidQueryError as exc:
                raise CatalogError(str(exc), self.table_name) from exc
            self._prepare(sql)
        return self.statement

    def close(self):
        """
        Release the statement used by this table. Calling `close` twice is harmless.
        """
        with self._lock:
            if self.statement is not None:
                self.statement.close()
                self.statement = None
            if not self._closed:
                LOG.debug(f"Closed table '{self.table_name}'.")
            self._closed = True
