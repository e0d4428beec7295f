##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The `backends` package holds the row sources the sample database tables read from.

Subpackages:
    sqlite: The SQLite connection and the guarded prepared statement.
"""
