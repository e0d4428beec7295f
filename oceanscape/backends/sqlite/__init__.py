##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
SQLite row source for the sample database.

Modules:
    sqlite_connection.py: Opens and configures SQLite connections.
    statement.py: A prepared query that allows at most one open cursor at a time.
"""

from oceanscape.backends.sqlite.sqlite_connection import SQLiteConnection
from oceanscape.backends.sqlite.statement import Statement


__all__ = ["SQLiteConnection", "Statement"]
