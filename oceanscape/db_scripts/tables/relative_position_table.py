##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""The table of relative positions, the time offsets environmental data are read at."""

from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import RelativePosition
from oceanscape.db_scripts.tables.singleton_table import SingletonTable


class RelativePositionTable(SingletonTable[RelativePosition]):
    """
    Resolves `RelativePosition` records. The query columns are, in order: ID,
    name, time lag in milliseconds and remarks. A NULL time lag means no offset.
    """

    table_name = "Positions"
    query_key = QueryKey.POSITIONS

    def create_entry(self, row) -> RelativePosition:
        time_lag = row[2]
        return RelativePosition(
            id=row[0],
            name=row[1],
            time_lag_ms=int(time_lag) if time_lag is not None else 0,
            remarks=row[3],
        )
