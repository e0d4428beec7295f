##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""The table of operations applied to parameters."""

from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import Operation
from oceanscape.db_scripts.tables.singleton_table import SingletonTable


class OperationTable(SingletonTable[Operation]):
    """
    Resolves `Operation` records. The query columns are, in order: ID, name,
    column name, prefix, processor operation and remarks.
    """

    table_name = "Operations"
    query_key = QueryKey.OPERATIONS

    def create_entry(self, row) -> Operation:
        return Operation(
            id=row[0],
            name=row[1],
            column=row[2],
            prefix=row[3],
            operation=row[4],
            remarks=row[5],
        )
