##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Structured SELECT queries for the sample database.

Each table is described by a `SelectQuery` (table, columns, joins, fixed
predicates, ordering) instead of raw SQL text. Deployments override any of
these fields through the configuration file, and the tables then render the
query for the mode they need:

- `QueryMode.LIST`: every row, key predicate omitted, ordering kept.
- `QueryMode.BY_ID`: rows whose ID column equals the single `?` parameter.
- `QueryMode.BY_NAME`: rows whose name column equals the single `?` parameter.

By convention the first two columns are the ID and the name of the record,
unless `id_column` and `name_column` say otherwise.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Dict, List, Optional

from oceanscape.exceptions import InvalidQueryError


LOG = logging.getLogger(__name__)


class QueryMode(Enum):
    """
    The shape of the query a singleton table currently holds a statement for.

    Attributes:
        LIST: Retrieve every record.
        BY_ID: Retrieve a record from its numeric ID.
        BY_NAME: Retrieve a record from its name.
    """

    LIST = "list"
    BY_ID = "by_id"
    BY_NAME = "by_name"


@dataclass
class SelectQuery:  # pylint: disable=too-many-instance-attributes
    """
    A SELECT statement described by its parts.

    Attributes:
        table: The table (or table expression) after `FROM`.
        columns: The selected columns, in the order tables read them.
        joins: Optional join clauses appended after the table.
        where: Fixed predicates that always apply, in every mode.
        order_by: Optional `ORDER BY` expression.
        has_id: False for tables keyed only by name (descriptors).
        id_column: Column compared in `BY_ID` mode. Defaults to the first column.
        name_column: Column compared in `BY_NAME` mode. Defaults to the column
            following the ID column.
        key_column: Column compared by `render_keyed`, for tables looked up
            from a foreign key (linear models, combinations).
    """

    table: str
    columns: List[str]
    joins: str = ""
    where: List[str] = field(default_factory=list)
    order_by: Optional[str] = None
    has_id: bool = True
    id_column: Optional[str] = None
    name_column: Optional[str] = None
    key_column: Optional[str] = None

    def __post_init__(self):
        if not self.table:
            raise InvalidQueryError("A query needs a table.")
        if not self.columns:
            raise InvalidQueryError(f"A query on '{self.table}' needs at least one column.")
        self.columns = list(self.columns)
        self.where = list(self.where or [])
        if self.has_id:
            if self.id_column is None:
                self.id_column = self.columns[0]
            if self.name_column is None and len(self.columns) > 1:
                self.name_column = self.columns[1]
        else:
            self.id_column = None
            if self.name_column is None:
                self.name_column = self.columns[0]

    @classmethod
    def field_names(cls) -> List[str]:
        """
        Get the names of the fields a configuration override may replace.

        Returns:
            A list of field names.
        """
        return [query_field.name for query_field in fields(cls)]

    def override(self, overrides: Dict) -> "SelectQuery":
        """
        Build a copy of this query with some fields replaced.

        When `columns` is replaced and `id_column`/`name_column` are not, they are
        derived again from the new columns.

        Args:
            overrides: A dictionary of field names to new values.

        Returns:
            A new `SelectQuery`.

        Raises:
            InvalidQueryError: If `overrides` names a field that doesn't exist.
        """
        unknown = set(overrides) - set(self.field_names())
        if unknown:
            raise InvalidQueryError(f"Unknown query field(s) for '{self.table}': {', '.join(sorted(unknown))}")
        values = dict(overrides)
        if "columns" in values or "has_id" in values:
            values.setdefault("id_column", None)
            values.setdefault("name_column", None)
        return replace(self, **values)

    def with_columns(self, *columns: str) -> "SelectQuery":
        """
        Build a copy of this query with extra columns appended.

        Args:
            columns: The columns to append. `None` entries are ignored.

        Returns:
            A new `SelectQuery` with the extra columns.
        """
        extra = [column for column in columns if column is not None]
        return replace(self, columns=self.columns + extra, id_column=self.id_column, name_column=self.name_column)

    def _render(self, predicates: List[str]) -> str:
        parts = [f"SELECT {', '.join(self.columns)}", f"FROM {self.table}"]
        if self.joins:
            parts.append(self.joins.strip())
        if predicates:
            parts.append("WHERE " + " AND ".join(predicates))
        if self.order_by:
            parts.append(f"ORDER BY {self.order_by}")
        return " ".join(parts)

    def render(self, mode: QueryMode) -> str:
        """
        Render the SQL text for one of the singleton query modes.

        Args:
            mode: The query mode.

        Returns:
            The SQL text, with one `?` parameter for `BY_ID` and `BY_NAME`.

        Raises:
            InvalidQueryError: If the mode needs a column this query doesn't have.
        """
        predicates = list(self.where)
        if mode is QueryMode.BY_ID:
            if not self.id_column:
                raise InvalidQueryError(f"Records of '{self.table}' can't be looked up by ID.")
            predicates.append(f"{self.id_column} = ?")
        elif mode is QueryMode.BY_NAME:
            if not self.name_column:
                raise InvalidQueryError(f"Records of '{self.table}' can't be looked up by name.")
            predicates.append(f"{self.name_column} = ?")
        elif mode is not QueryMode.LIST:
            raise InvalidQueryError(f"Unsupported query mode: {mode}")
        sql = self._render(predicates)
        LOG.debug(f"Rendered {mode.value} query: {sql}")
        return sql

    def render_keyed(self) -> str:
        """
        Render the SQL text filtering on `key_column` with one `?` parameter.

        Returns:
            The SQL text.

        Raises:
            InvalidQueryError: If this query has no key column.
        """
        if not self.key_column:
            raise InvalidQueryError(f"Query on '{self.table}' has no key column.")
        return self._render(self.where + [f"{self.key_column} = ?"])

    def render_filtered(self, predicates: List[str]) -> str:
        """
        Render the SQL text with programmatic predicates added to the fixed ones.

        Args:
            predicates: Extra predicates, joined with `AND`.

        Returns:
            The SQL text.
        """
        return self._render(self.where + list(predicates))
