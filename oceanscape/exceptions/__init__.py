##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Module of all Oceanscape-specific exception types.
"""

__all__ = (
    "CatalogError",
    "NoSuchRecordError",
    "IllegalRecordError",
    "CursorBusyError",
    "IllegalEntryStateError",
    "InvalidQueryError",
)


class CatalogError(Exception):
    """
    Base exception for every failure while querying the sample database.
    Underlying `sqlite3.Error`s are re-raised as this type.

    Attributes:
        table: The name of the table the failure relates to, if known.
    """

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.table = table


class NoSuchRecordError(CatalogError):
    """
    Exception to signal that no record exists for a requested ID or name.
    """


class IllegalRecordError(CatalogError):
    """
    Exception to signal a data integrity problem, such as several rows
    resolving to different entities under the same key.
    """


class CursorBusyError(CatalogError):
    """
    Exception to signal that a statement was executed while a previous
    cursor on the same statement was still open.
    """


class IllegalEntryStateError(Exception):
    """
    Exception to signal an invalid state transition on an entity, such as
    completing a parameter that is already complete.
    """


class InvalidQueryError(ValueError):
    """
    Exception to signal that a query definition can't be rendered for the
    requested mode.
    """
