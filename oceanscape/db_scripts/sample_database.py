##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module contains the `SampleDatabase` class, the entry point to the sample
database. It owns the connection and a single graph of tables (descriptors,
parameters, operations, relative positions) sharing one lock, so that every
lookup returns the same instances for the lifetime of the database object.
"""

import logging
from types import TracebackType
from typing import List, Optional, Sequence, Type

from oceanscape.backends.sqlite import SQLiteConnection
from oceanscape.config.configfile import DatabaseConfig
from oceanscape.db_scripts.data_models import Descriptor, LinearModelTerm, Operation, Parameter, RelativePosition
from oceanscape.db_scripts.sample_table import SampleShape, SampleTable
from oceanscape.db_scripts.tables.descriptor_table import DescriptorTable
from oceanscape.db_scripts.tables.operation_table import OperationTable
from oceanscape.db_scripts.tables.parameter_table import ParameterTable
from oceanscape.db_scripts.tables.relative_position_table import RelativePositionTable


LOG = logging.getLogger(__name__)


class SampleDatabase:
    """
    A connection to the sample database with typed, cached lookups.

    Attributes:
        config: The database configuration.

    Methods:
        get_parameters: List the environmental parameters.
        get_operations: List the operations.
        get_relative_positions: List the relative positions.
        get_descriptors: List the descriptors.
        get_parameter: Get a parameter by name.
        get_descriptor: Get a descriptor by name.
        get_linear_model: Get the linear model computing a parameter.
        get_sample_table: Get a table of samples.
        close: Close every table and the connection.
    """

    def __init__(self, config: DatabaseConfig = None):
        """
        Args:
            config: The database configuration. When omitted, it is loaded from
                the application configuration file.
        """
        self.config = config if config is not None else DatabaseConfig.load()
        self._connection = SQLiteConnection(self.config.path)
        connection = self._connection.open()
        self._descriptors = DescriptorTable(connection, self.config)
        self._sample_tables: List[SampleTable] = []
        LOG.info(f"Opened sample database at {self.config.path}")

    def __repr__(self) -> str:
        return f"SampleDatabase(path={self.config.path!r})"

    def __enter__(self) -> "SampleDatabase":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()

    @property
    def parameters(self) -> ParameterTable:
        """The table of parameters, shared with the descriptors."""
        return self._descriptors.get_parameter_table()

    @property
    def operations(self) -> OperationTable:
        """The table of operations, shared with the descriptors."""
        return self._descriptors.get_operation_table()

    @property
    def positions(self) -> RelativePositionTable:
        """The table of relative positions, shared with the descriptors."""
        return self._descriptors.get_position_table()

    def get_parameters(self) -> List[Parameter]:
        """List the environmental parameters, identity parameter excluded."""
        return self.parameters.get_all()

    def get_operations(self) -> List[Operation]:
        """List the operations."""
        return self.operations.get_all()

    def get_relative_positions(self) -> List[RelativePosition]:
        """List the relative positions, in query order."""
        return self.positions.get_all()

    def get_descriptors(self) -> List[Descriptor]:
        """
        List the descriptors, with their parameters completed.

        Returns:
            The descriptors, in query order.
        """
        descriptors = self._descriptors.get_all()
        self._descriptors.complete_parameters(descriptors)
        return descriptors

    def get_parameter(self, name: Optional[str]) -> Optional[Parameter]:
        """
        Get a parameter by name.

        Args:
            name: The name of the parameter.

        Returns:
            The parameter, or None if `name` is None.

        Raises:
            NoSuchRecordError: If there is no parameter of that name.
        """
        if name is None:
            return None
        return self.parameters.get_entry(name)

    def get_descriptor(self, name: Optional[str]) -> Optional[Descriptor]:
        """
        Get a descriptor by name, with its parameter completed.

        Args:
            name: The name of the descriptor.

        Returns:
            The descriptor, or None if `name` is None.

        Raises:
            NoSuchRecordError: If there is no descriptor of that name.
        """
        if name is None:
            return None
        descriptor = self._descriptors.get_entry(name)
        self._descriptors.complete_parameters([descriptor])
        return descriptor

    def get_linear_model(self, name: str) -> Optional[List[LinearModelTerm]]:
        """
        Get the linear model computing a parameter.

        Args:
            name: The name of the parameter.

        Returns:
            The terms of the model, or None if the parameter isn't computed by one.
        """
        return self.parameters.get_entry(name).linear_model

    def get_sample_table(self, shape: SampleShape = SampleShape.POINT, species: Sequence[str] = ()) -> SampleTable:
        """
        Get a table listing the samples of one shape. The table is closed with
        this database unless the caller closes it first.

        Args:
            shape: The shape of the samples.
            species: The species whose catches are read.

        Returns:
            A new `SampleTable`.
        """
        table = SampleTable(self._connection.conn, self.config, shape, species)
        self._sample_tables = [open_table for open_table in self._sample_tables if not open_table.closed]
        self._sample_tables.append(table)
        return table

    def close(self):
        """Close every table, then the connection."""
        for table in self._sample_tables:
            table.close()
        self._sample_tables.clear()
        self._descriptors.close()
        self._connection.close()
        LOG.info(f"Closed sample database at {self.config.path}")
