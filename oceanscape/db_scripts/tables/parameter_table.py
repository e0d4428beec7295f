##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The table of environmental parameters.

Parameters can be requested in an incomplete form holding only their ID (see
`ParameterTable.get_incomplete_entry`). Descriptors embed parameters that way
so that building a descriptor never resolves the linear model of its
parameter, which would need the descriptor table again. Incomplete parameters
are completed by `ParameterTable.complete_entry` once the cursor that produced
them is closed.
"""

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING, Dict, List, Union

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import Parameter
from oceanscape.db_scripts.query_builder import QueryMode
from oceanscape.db_scripts.tables.combination_table import CombinationTable
from oceanscape.db_scripts.tables.linear_model_table import LinearModelTable
from oceanscape.db_scripts.tables.singleton_table import SingletonTable


if TYPE_CHECKING:
    from oceanscape.db_scripts.tables.descriptor_table import DescriptorTable


LOG = logging.getLogger(__name__)


class ParameterTable(SingletonTable[Parameter]):
    """
    Resolves `Parameter` records, along with the components or the linear model
    they are derived from.

    The query columns are, in order: ID, name, main series, alternate series,
    band and, optionally, remarks.

    Methods:
        get_incomplete_entry: Get a parameter holding only its ID.
        complete_entry: Fill in the fields of an incomplete parameter.
        get_linear_model_table: Get the table of linear models.
        get_combination_table: Get the table of parameter combinations.
        get_descriptor_table: Get the table of descriptors used by linear models.
    """

    table_name = "Parameters"
    query_key = QueryKey.PARAMETERS

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: DatabaseConfig,
        descriptors: "DescriptorTable" = None,
        lock: threading.RLock = None,
    ):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            descriptors: The descriptor table linear model terms are resolved
                from. If None, one is built on first use and closed with this table.
            lock: The lock to serialize on.
        """
        super().__init__(connection, config, lock)
        self._descriptors = descriptors
        self._owns_descriptors = False
        self._linear_models: LinearModelTable = None
        self._combinations: CombinationTable = None

    def create_entry(self, row) -> Parameter:
        band = row[4]
        return Parameter(
            id=row[0],
            name=row[1],
            series=row[2],
            series2=row[3],
            band=band if band is not None else 0,
            remarks=row[5] if len(row) > 5 else None,
        )

    @staticmethod
    def _fill(target: Parameter, source: Parameter):
        target.complete(source.name, source.series, source.series2, source.band, source.remarks)

    def _canonical(self, entry: Parameter) -> Parameter:
        cached = self._cache.get(entry.id)
        if cached is not None and not cached.is_complete:
            self._fill(cached, entry)
            return cached
        return super()._canonical(entry)

    def _rollback(self, entry: Parameter):
        entry.reset()
        super()._rollback(entry)

    def _from_cache(self, entry: Parameter) -> Parameter:
        if not entry.is_complete:
            self.complete_entry(entry)
        return entry

    def _is_created(self, entry: Parameter) -> bool:
        return entry.has_components and entry.has_linear_model

    def _relist(self, listed: List[Parameter], previous: Dict[Union[int, str], Parameter]) -> List[Parameter]:
        """
        Keep the instances of parameters that are still listed, since descriptors
        may hold them. They are refilled from the listed rows and their components
        and linear model are resolved again.

        Args:
            listed: The parameters built from the listed rows.
            previous: The cache content before `get_all` cleared it.

        Returns:
            The parameters to cache, in query order.
        """
        relisted = []
        for entry in listed:
            # Each kept instance is reused once, so duplicate rows are still compared.
            kept = previous.pop(entry.id, None)
            if kept is None:
                relisted.append(entry)
                continue
            kept.reset()
            self._fill(kept, entry)
            relisted.append(kept)
        return relisted

    def accept(self, entry: Parameter) -> bool:
        """The identity parameter is never listed."""
        return not entry.is_identity

    def post_create_entry(self, entry: Parameter):
        """
        Resolve the components of a parameter, then its linear model if it has no
        components. Parts already resolved are left untouched.

        Args:
            entry: A complete parameter.
        """
        if not entry.has_components:
            entry.init_components(self.get_combination_table().get_components(entry))
        if entry.has_linear_model:
            return
        if entry.components:
            entry.set_linear_model(None)
        else:
            entry.set_linear_model(self.get_linear_model_table().get_terms(entry))

    def get_incomplete_entry(self, id: int) -> Parameter:  # pylint: disable=redefined-builtin
        """
        Get the parameter of an ID without querying the database. If the
        parameter isn't cached yet, an incomplete parameter holding only its ID
        is cached and returned. It must be completed with `complete_entry` once
        no cursor that could need this table is open anymore.

        Args:
            id: The ID of the parameter.

        Returns:
            The cached parameter, complete or not.

        Raises:
            TypeError: If `id` is not an int.
            CatalogError: If the table is closed.
        """
        if isinstance(id, bool) or not isinstance(id, int):
            raise TypeError(f"Parameter IDs are int, not {type(id).__name__}.")
        with self._lock:
            self._check_open()
            entry = self._cache.get(id)
            if entry is None:
                entry = Parameter(id)
                self._cache.put(id, entry)
                LOG.debug(f"Cached incomplete parameter {id}.")
            return entry

    def complete_entry(self, entry: Parameter) -> Parameter:
        """
        Fill in the fields of a parameter returned by `get_incomplete_entry`, then
        resolve its components and linear model. Does nothing (and issues no
        query) if the parameter is already complete.

        If resolving the components or the linear model fails, the parameter is
        brought back to its incomplete state and evicted from the cache before
        the error propagates.

        Args:
            entry: The parameter to complete.

        Returns:
            The same parameter.

        Raises:
            NoSuchRecordError: If there is no record for the parameter's ID.
            IllegalRecordError: If several different records have that ID.
            CatalogError: If a query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            if entry.is_complete:
                cached = self._cache.get(entry.id)
                if cached is not None and cached is not entry:
                    LOG.debug(f"Parameter {entry} is complete but not the cached instance of '{self.table_name}'.")
                return entry
            self._fill(entry, self._fetch_single(QueryMode.BY_ID, entry.id))
            self._cache_entry(entry)
            LOG.debug(f"Completed parameter {entry.id} ('{entry}').")
            self._post_create(entry)
            return entry

    def get_descriptor_table(self) -> "DescriptorTable":
        """
        Get the descriptor table linear model terms are resolved from.

        Returns:
            The descriptor table given at construction, or one owned by this table.
        """
        with self._lock:
            self._check_open()
            if self._descriptors is None:
                from oceanscape.db_scripts.tables.descriptor_table import (  # pylint: disable=import-outside-toplevel
                    DescriptorTable,
                )

                self._descriptors = DescriptorTable(self.connection, self.config, parameters=self, lock=self._lock)
                self._owns_descriptors = True
            return self._descriptors

    def get_linear_model_table(self) -> LinearModelTable:
        """
        Get the table of linear models, creating it on first use.

        Returns:
            A linear model table sharing this table's connection and lock.
        """
        with self._lock:
            self._check_open()
            if self._linear_models is None:
                self._linear_models = LinearModelTable(
                    self.connection, self.config, descriptors=self.get_descriptor_table(), lock=self._lock
                )
            return self._linear_models

    def get_combination_table(self) -> CombinationTable:
        """
        Get the table of parameter combinations, creating it on first use.

        Returns:
            A combination table sharing this table's connection and lock.
        """
        with self._lock:
            self._check_open()
            if self._combinations is None:
                self._combinations = CombinationTable(self.connection, self.config, parameters=self, lock=self._lock)
            return self._combinations

    def close(self):
        """Close this table and the tables it created."""
        with self._lock:
            if self._linear_models is not None:
                self._linear_models.close()
            if self._combinations is not None:
                self._combinations.close()
            if self._owns_descriptors:
                self._descriptors.close()
            super().close()
