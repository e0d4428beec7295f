##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The table of descriptors of the oceanic landscape.

A descriptor combines a parameter, a relative position, an operation and a
distribution. Its parameter is taken in incomplete form: building a
descriptor never queries the parameter table, since completing a parameter
may resolve a linear model that needs this very table. Callers complete the
parameters of the descriptors they obtained with `complete_parameters` once
their own cursor is closed.
"""

import logging
import math
import sqlite3
import threading
from typing import Iterable, Tuple, Union

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import (
    Descriptor,
    Distribution,
    LogScaledDescriptor,
    RelativePosition,
    ScaledDescriptor,
)
from oceanscape.db_scripts.query_builder import QueryMode
from oceanscape.db_scripts.tables.operation_table import OperationTable
from oceanscape.db_scripts.tables.parameter_table import ParameterTable
from oceanscape.db_scripts.tables.relative_position_table import RelativePositionTable
from oceanscape.db_scripts.tables.singleton_table import SingletonTable
from oceanscape.exceptions import IllegalRecordError, InvalidQueryError


LOG = logging.getLogger(__name__)


def _distribution(code: int) -> Union[Distribution, int]:
    try:
        return Distribution(code)
    except ValueError:
        return code


class DescriptorTable(SingletonTable[Descriptor]):
    """
    Resolves `Descriptor` records by name.

    The query columns are, in order: name, relative position ID, parameter ID,
    operation ID, distribution code, scale, offset and logarithm flag. A NULL
    scale stands for 1 and a NULL offset for 0.

    Methods:
        complete_parameters: Complete the parameters embedded in descriptors.
        get_parameter_table: Get the table of parameters.
        get_position_table: Get the table of relative positions.
        get_operation_table: Get the table of operations.
    """

    table_name = "Descriptors"
    query_key = QueryKey.DESCRIPTORS

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: DatabaseConfig,
        parameters: ParameterTable = None,
        lock: threading.RLock = None,
    ):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            parameters: The parameter table descriptors take their parameters
                from. If None, one is built on first use and closed with this table.
            lock: The lock to serialize on.
        """
        super().__init__(connection, config, lock)
        self._parameters = parameters
        self._owns_parameters = False
        self._positions: RelativePositionTable = None
        self._operations: OperationTable = None

    def _get_sql(self, mode: QueryMode) -> str:
        if mode is QueryMode.BY_ID:
            raise InvalidQueryError(f"Records of '{self.table_name}' are looked up by name only.")
        return super()._get_sql(mode)

    def _keys_of(self, entry: Descriptor) -> Tuple[str]:
        return (entry.name,)

    def create_entry(self, row) -> Descriptor:
        name, position_id, parameter_id, operation_id, code, scale, offset, logarithm = tuple(row)[:8]
        if parameter_id is None or operation_id is None:
            LOG.error(f"Descriptor '{name}' has no parameter or no operation.")
            raise IllegalRecordError(f"Descriptor '{name}' is incomplete.", self.table_name)
        if position_id is None:
            position = RelativePosition.NULL
        else:
            position = self.get_position_table().get_entry(position_id)
        operation = self.get_operation_table().get_entry(operation_id)
        parameter = self.get_parameter_table().get_incomplete_entry(parameter_id)
        distribution = _distribution(code if code is not None else Distribution.NORMAL)

        scale = float(scale) if scale is not None else 1.0
        offset = float(offset) if offset is not None else 0.0
        if not (math.isfinite(scale) and math.isfinite(offset)):
            LOG.error(f"Descriptor '{name}' has a non-finite scale ({scale}) or offset ({offset}).")
            raise IllegalRecordError(f"Descriptor '{name}' has an invalid distribution.", self.table_name)

        if logarithm:
            return LogScaledDescriptor(name, parameter, position, operation, distribution, scale, offset)
        if scale != 1.0 or offset != 0.0:
            return ScaledDescriptor(name, parameter, position, operation, distribution, scale, offset)
        return Descriptor(name, parameter, position, operation, distribution)

    def complete_parameters(self, descriptors: Iterable[Descriptor]):
        """
        Complete the parameters of descriptors obtained from this table. Must be
        called with no cursor of this table or of the parameter table open.

        Args:
            descriptors: The descriptors whose parameters to complete.

        Raises:
            NoSuchRecordError: If a parameter has no record.
            CatalogError: If a query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            parameters = self.get_parameter_table()
            for descriptor in descriptors:
                parameters.complete_entry(descriptor.parameter)

    def get_parameter_table(self) -> ParameterTable:
        """
        Get the parameter table descriptors take their parameters from.

        Returns:
            The parameter table given at construction, or one owned by this table.
        """
        with self._lock:
            self._check_open()
            if self._parameters is None:
                self._parameters = ParameterTable(self.connection, self.config, descriptors=self, lock=self._lock)
                self._owns_parameters = True
            return self._parameters

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

    def close(self):
        """Close this table and the tables it created."""
        with self._lock:
            if self._positions is not None:
                self._positions.close()
            if self._operations is not None:
                self._operations.close()
            if self._owns_parameters:
                self._parameters.close()
            super().close()
