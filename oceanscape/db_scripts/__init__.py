##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The `db_scripts` package contains the data-access layer of the sample database.

Modules:
    data_models.py: The entities resolved from the database.
    entity_cache.py: The cache of resolved entities shared by lookup tables.
    query_builder.py: Structured, configurable SELECT queries.
    sample_database.py: The `SampleDatabase` entry point.
    sample_table.py: Filtered listings of catch samples.

Subpackages:
    tables: The lookup tables and their recursive resolution protocol.
"""
