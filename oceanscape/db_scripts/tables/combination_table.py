##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""The table of parameter combinations, weighted sums of other parameters."""

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING, List

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import Component, Parameter, RelativePosition
from oceanscape.db_scripts.tables.operation_table import OperationTable
from oceanscape.db_scripts.tables.relative_position_table import RelativePositionTable
from oceanscape.db_scripts.tables.table import Table
from oceanscape.exceptions import IllegalRecordError


if TYPE_CHECKING:
    from oceanscape.db_scripts.tables.parameter_table import ParameterTable


LOG = logging.getLogger(__name__)


class CombinationTable(Table):
    """
    Resolves the components of parameters built as combinations of other
    parameters. The query columns are, in order: source parameter ID,
    relative position ID (NULL for no offset), operation ID, weight and
    logarithm flag.

    Methods:
        get_components: Get the components of a parameter.
        get_position_table: Get the table of relative positions.
        get_operation_table: Get the table of operations.
    """

    table_name = "Combinations"
    query_key = QueryKey.COMBINATIONS

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: DatabaseConfig,
        parameters: "ParameterTable",
        lock: threading.RLock = None,
    ):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            parameters: The table the source parameters are resolved from.
            lock: The lock to serialize on.
        """
        super().__init__(connection, config, lock)
        self.parameters = parameters
        self._positions: RelativePositionTable = None
        self._operations: OperationTable = None

    def get_position_table(self) -> RelativePositionTable:
        """Get the table of relative positions, creating it on first use."""
        with self._lock:
            self._check_open()
            if self._positions is None:
                self._positions = RelativePositionTable(self.connection, self.config, lock=self._lock)
            return self._positions

    def get_operation_table(self) -> OperationTable:
        """Get the table of operations, creating it on first use."""
        with self._lock:
            self._check_open()
            if self._operations is None:
                self._operations = OperationTable(self.connection, self.config, lock=self._lock)
            return self._operations

    def _component(self, target: Parameter, row) -> Component:
        source_id, position_id, operation_id, weight, logarithm = row[0], row[1], row[2], row[3], row[4]
        if source_id is None or operation_id is None:
            LOG.error(f"A component of parameter {target} has no source or no operation.")
            raise IllegalRecordError(f"Parameter {target} has an incomplete component.", self.table_name)
        if position_id is None:
            position = RelativePosition.NULL
        else:
            position = self.get_position_table().get_entry(position_id)
        return Component(
            source=self.parameters.get_incomplete_entry(source_id),
            position=position,
            operation=self.get_operation_table().get_entry(operation_id),
            weight=float(weight) if weight is not None else 1.0,
            logarithm=bool(logarithm),
        )

    def get_components(self, target: Parameter) -> List[Component]:
        """
        Get the components of a parameter. The source parameters are completed
        once the cursor of this table is closed.

        Args:
            target: The parameter built from the components.

        Returns:
            The components, or an empty list if the parameter isn't a combination.

        Raises:
            IllegalRecordError: If a component has no source or no operation.
            CatalogError: If a query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            statement = self._keyed_statement()
            with statement.execute(target.id) as rows:
                components = [self._component(target, row) for row in rows]
            for component in components:
                self.parameters.complete_entry(component.source)
            if components:
                LOG.debug(f"Resolved {len(components)} component(s) for parameter {target}.")
            return components

    def close(self):
        """Close this table and the tables it created."""
        with self._lock:
            if self._positions is not None:
                self._positions.close()
            if self._operations is not None:
                self._operations.close()
            super().close()
