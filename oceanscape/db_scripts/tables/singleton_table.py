##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module defines `SingletonTable`, the generic resolver behind every lookup
table of the sample database.

A singleton table maps a numeric ID or a name to exactly one entity. Entities
are built in two phases:

1. `create_entry` turns one row into an entity while the query's cursor is
   open. It must not issue queries that could need the same statement.
2. `post_create_entry` runs once the cursor is closed and the entity is
   cached. This is where an entity may trigger further (possibly recursive)
   lookups, since no cursor of this table is open anymore.

If the second phase fails, the entity is evicted from the cache before the
error propagates, so a retry starts from scratch.
"""

import logging
from abc import abstractmethod
from typing import Dict, Generic, Iterable, List, Optional, Tuple, TypeVar, Union

from oceanscape.backends.sqlite.statement import Statement
from oceanscape.db_scripts.entity_cache import EntityCache
from oceanscape.db_scripts.query_builder import QueryMode
from oceanscape.db_scripts.tables.table import Table
from oceanscape.exceptions import CatalogError, IllegalRecordError, InvalidQueryError, NoSuchRecordError


LOG = logging.getLogger(__name__)

E = TypeVar("E")


class SingletonTable(Table, Generic[E]):
    """
    A table whose records are looked up one at a time by ID or by name, or all
    at once, and cached for the lifetime of the table.

    Subclasses implement `create_entry` and may override `post_create_entry`,
    `accept` and `_keys_of`.

    Methods:
        get_entry: Get the entity for an ID or a name.
        get_all: Get every entity, refreshing the cache.
        create_entry: Build an entity from the current row.
        post_create_entry: Finish an entity once the cursor is closed.
        accept: Decide whether a listed entity is returned by `get_all`.
        close: Release the statement and clear the cache.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._mode: Optional[QueryMode] = None
        self._cache: EntityCache[E] = EntityCache(self.table_name)

    def _get_sql(self, mode: QueryMode) -> str:
        """
        Build the SQL text of the query for a mode.

        Args:
            mode: The query mode.

        Returns:
            The SQL text.
        """
        return self.query.render(mode)

    def _set_mode(self, mode: QueryMode) -> Statement:
        """
        Get a statement for `mode`, preparing a new one only if the mode changed.

        Args:
            mode: The query mode.

        Returns:
            The statement to execute.

        Raises:
            CatalogError: If the query can't be rendered for `mode`.
        """
        if mode is self._mode and self.statement is not None and not self.statement.closed:
            return self.statement
        try:
            sql = self._get_sql(mode)
        except InvalidQueryError as exc:
            raise CatalogError(str(exc), self.table_name) from exc
        statement = self._prepare(sql)
        self._mode = mode
        LOG.debug(f"Table '{self.table_name}' switched to {mode.value} mode.")
        return statement

    @abstractmethod
    def create_entry(self, row) -> E:
        """
        Build an entity from a row. Called while the cursor is still open, so
        implementations must not query tables that could share this statement.

        Args:
            row: The current row, read by column position.

        Returns:
            The new entity.
        """
        raise NotImplementedError("Subclasses of `SingletonTable` must implement a `create_entry` method.")

    def post_create_entry(self, entry: E):
        """
        Finish an entity after the cursor is closed and the entity is cached.
        Does nothing by default.

        Args:
            entry: The entity returned by `create_entry`.
        """

    def accept(self, entry: E) -> bool:  # pylint: disable=unused-argument
        """
        Decide whether `get_all` returns an entity.

        Args:
            entry: A listed entity.

        Returns:
            True to keep the entity. Always true by default.
        """
        return True

    def _keys_of(self, entry: E) -> Tuple[Optional[Union[int, str]], ...]:
        """The cache keys an entity is reachable from."""
        return (entry.id, entry.name)

    def _canonical(self, entry: E) -> E:
        """
        Get the instance to cache for a freshly built entity. If an equal entity
        is already cached under one of its keys, that instance is kept.

        Args:
            entry: The entity returned by `create_entry`.

        Returns:
            The instance to cache.

        Raises:
            IllegalRecordError: If a different entity is cached under one of its keys.
        """
        for key in self._keys_of(entry):
            if key is None:
                continue
            cached = self._cache.get(key)
            if cached is None:
                continue
            if cached != entry:
                LOG.error(f"Record {key!r} of '{self.table_name}' contradicts the cached record: {cached!r}")
                raise IllegalRecordError(f"Record {key!r} of '{self.table_name}' is inconsistent.", self.table_name)
            return cached
        return entry

    def _cache_entry(self, entry: E, key: Union[int, str] = None):
        if key is not None:
            self._cache.put(key, entry)
        self._cache.alias(entry, *self._keys_of(entry))

    def _rollback(self, entry: E):
        """
        Evict an entity whose `post_create_entry` failed.

        Args:
            entry: The entity to evict.
        """
        LOG.debug(f"Evicting {entry!r} from the cache of '{self.table_name}'.")
        self._cache.discard(entry)

    def _post_create(self, entry: E):
        try:
            self.post_create_entry(entry)
        except Exception:
            self._rollback(entry)
            raise

    def _is_created(self, entry: E) -> bool:  # pylint: disable=unused-argument
        """
        Tell whether `post_create_entry` already ran to completion for an entity.
        Used by `get_all` to keep the listed entities that were finished as a side
        effect of another one. False by default.

        Args:
            entry: A cached entity.

        Returns:
            True if the entity needs no further post-creation.
        """
        return False

    def _relist(
        self, listed: List[E], previous: Dict[Union[int, str], E]  # pylint: disable=unused-argument
    ) -> List[E]:
        """
        Choose the instances `get_all` caches for the listed entities. Listed
        entities replace the previously cached ones by default.

        Args:
            listed: The accepted entities built from the listed rows.
            previous: The cache content before `get_all` cleared it.

        Returns:
            The entities to cache, in query order.
        """
        return listed

    def _fetch_single(self, mode: QueryMode, key: Union[int, str]) -> E:
        """
        Run the query for one key and build its entity. The cursor is closed on return.

        Args:
            mode: `QueryMode.BY_ID` or `QueryMode.BY_NAME`.
            key: The ID or the name.

        Returns:
            The single entity the rows resolve to.

        Raises:
            NoSuchRecordError: If there are no rows for `key`.
            IllegalRecordError: If the rows resolve to different entities.
        """
        statement = self._set_mode(mode)
        entry = None
        with statement.execute(key) as rows:
            for row in rows:
                candidate = self.create_entry(row)
                if entry is None:
                    entry = candidate
                elif candidate != entry:
                    LOG.error(f"Duplicate records for {key!r} in '{self.table_name}': {entry!r} and {candidate!r}")
                    raise IllegalRecordError(
                        f"Key {key!r} matches more than one record in '{self.table_name}'.", self.table_name
                    )
        if entry is None:
            raise NoSuchRecordError(f"No record for {key!r} in '{self.table_name}'.", self.table_name)
        return entry

    def _execute_query(self, key: Union[int, str]) -> E:
        mode = QueryMode.BY_NAME if isinstance(key, str) else QueryMode.BY_ID
        entry = self._canonical(self._fetch_single(mode, key))
        self._cache_entry(entry, key)
        self._post_create(entry)
        return entry

    def _from_cache(self, entry: E) -> E:
        """Hook run on cache hits of `get_entry`. Returns the entry unchanged by default."""
        return entry

    def get_entry(self, identifier: Union[int, str]) -> E:
        """
        Get the entity for an ID or a name. The same instance is returned for
        every lookup of the same record for the lifetime of the table.

        Args:
            identifier: A numeric ID or a name.

        Returns:
            The entity.

        Raises:
            TypeError: If `identifier` is neither an int nor a str.
            NoSuchRecordError: If no record matches.
            IllegalRecordError: If several different records match.
            CatalogError: If the query fails or the table is closed.
        """
        if isinstance(identifier, bool) or not isinstance(identifier, (int, str)):
            raise TypeError(f"Records are looked up by int ID or str name, not {type(identifier).__name__}.")
        with self._lock:
            self._check_open()
            cached = self._cache.get(identifier)
            if cached is not None:
                return self._from_cache(cached)
            return self._execute_query(identifier)

    def _unique(self, entries: Iterable[E]) -> List[E]:
        unique = []
        for entry in entries:
            duplicate = False
            for key in self._keys_of(entry):
                cached = self._cache.get(key) if key is not None else None
                if cached is None:
                    continue
                if cached != entry:
                    LOG.error(f"Duplicate records for {key!r} in '{self.table_name}': {cached!r} and {entry!r}")
                    raise IllegalRecordError(
                        f"Key {key!r} matches more than one record in '{self.table_name}'.", self.table_name
                    )
                duplicate = True
            if not duplicate:
                self._cache_entry(entry)
                unique.append(entry)
        return unique

    def get_all(self) -> List[E]:
        """
        Get every accepted entity, in query order. The cache is cleared first so
        that records removed from the database since the last call are dropped.
        If `post_create_entry` fails for one entity, it and every entity listed
        after it that wasn't finished yet are evicted before the error propagates.

        Returns:
            A list of entities.

        Raises:
            IllegalRecordError: If two listed rows give different entities for one key.
            CatalogError: If the query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            previous = {key: self._cache.get(key) for key in self._cache}
            self._cache.clear()
            statement = self._set_mode(QueryMode.LIST)
            with statement.execute() as rows:
                listed = [entry for entry in map(self.create_entry, rows) if self.accept(entry)]
            entries = self._unique(self._relist(listed, previous))
            for index, entry in enumerate(entries):
                try:
                    self._post_create(entry)
                except Exception:
                    # Entries not yet post-created must not be served from the cache.
                    for pending in entries[index + 1 :]:
                        if not self._is_created(pending):
                            self._rollback(pending)
                    raise
            LOG.debug(f"Listed {len(entries)} record(s) of '{self.table_name}'.")
            return entries

    def close(self):
        """Release the statement and clear the cache."""
        with self._lock:
            super().close()
            self._cache.clear()
            self._mode = None
