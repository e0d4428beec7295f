##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The overridable queries of the sample database and their default definitions.

Every key of `QueryKey` may be overridden from the `queries` section of the
configuration file, using the key's value as the section name:

```yaml
queries:
  parameters:
    table: Paramètres
    columns: [ID, nom, séries0, séries1, bande]
```
"""

from enum import Enum
from typing import Dict

from oceanscape.db_scripts.query_builder import SelectQuery


class QueryKey(Enum):
    """The queries a deployment can customize."""

    PARAMETERS = "parameters"
    OPERATIONS = "operations"
    POSITIONS = "positions"
    DESCRIPTORS = "descriptors"
    LINEAR_MODELS = "linear_models"
    COMBINATIONS = "combinations"
    POINT_SAMPLES = "point_samples"
    LINE_SAMPLES = "line_samples"


DEFAULT_QUERIES: Dict[QueryKey, SelectQuery] = {
    QueryKey.PARAMETERS: SelectQuery(
        table="parameters",
        columns=["id", "name", "series0", "series1", "band"],
        order_by="name",
    ),
    QueryKey.OPERATIONS: SelectQuery(
        table="operations",
        columns=["id", "name", "column_name", "prefix", "operation", "remarks"],
        order_by="id",
    ),
    QueryKey.POSITIONS: SelectQuery(
        table="positions",
        columns=["id", "name", "time_lag", "remarks"],
        order_by="time_lag",
    ),
    QueryKey.DESCRIPTORS: SelectQuery(
        table="descriptors",
        joins="INNER JOIN distributions ON descriptors.distribution = distributions.id",
        columns=[
            "descriptors.name",
            "descriptors.position",
            "descriptors.parameter",
            "descriptors.operation",
            "descriptors.distribution",
            "distributions.scale",
            "distributions.shift",
            "distributions.logarithm",
        ],
        has_id=False,
        order_by="descriptors.name",
    ),
    QueryKey.LINEAR_MODELS: SelectQuery(
        table="linear_models",
        columns=["source1", "source2", "coefficient"],
        has_id=False,
        key_column="target",
    ),
    QueryKey.COMBINATIONS: SelectQuery(
        table="combinations",
        columns=["source", "position", "operation", "weight", "logarithm"],
        has_id=False,
        key_column="target",
    ),
    QueryKey.POINT_SAMPLES: SelectQuery(
        table="samples",
        columns=["id", "cruise", "time", "x", "y"],
        order_by="time",
    ),
    QueryKey.LINE_SAMPLES: SelectQuery(
        table="longline_samples",
        columns=["id", "cruise", "start_time", "start_x", "start_y", "end_x", "end_y"],
        order_by="start_time",
    ),
}
