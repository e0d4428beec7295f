##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The lookup tables of the sample database.

Modules:
    table.py: The base class holding the statement and the lock of a table.
    singleton_table.py: The generic by-ID/by-name resolver and its two-phase protocol.
    operation_table.py: Operations.
    relative_position_table.py: Relative positions.
    parameter_table.py: Parameters, complete or incomplete.
    descriptor_table.py: Descriptors.
    linear_model_table.py: Linear models of derived parameters.
    combination_table.py: Components of combined parameters.
"""

from oceanscape.db_scripts.tables.combination_table import CombinationTable
from oceanscape.db_scripts.tables.descriptor_table import DescriptorTable
from oceanscape.db_scripts.tables.linear_model_table import LinearModelTable
from oceanscape.db_scripts.tables.operation_table import OperationTable
from oceanscape.db_scripts.tables.parameter_table import ParameterTable
from oceanscape.db_scripts.tables.relative_position_table import RelativePositionTable
from oceanscape.db_scripts.tables.singleton_table import SingletonTable
from oceanscape.db_scripts.tables.table import Table


__all__ = [
    "CombinationTable",
    "DescriptorTable",
    "LinearModelTable",
    "OperationTable",
    "ParameterTable",
    "RelativePositionTable",
    "SingletonTable",
    "Table",
]
