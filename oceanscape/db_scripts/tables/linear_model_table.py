##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The table of linear models, which derive parameters from products of descriptors.

Each row is one term of the model of a target parameter: the names of one or
two source descriptors and a coefficient. A term whose descriptor refers to
the identity parameter collapses to its other descriptor.
"""

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING, List, Optional

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import Descriptor, LinearModelTerm, Parameter
from oceanscape.db_scripts.tables.table import Table
from oceanscape.exceptions import IllegalRecordError


if TYPE_CHECKING:
    from oceanscape.db_scripts.tables.descriptor_table import DescriptorTable


LOG = logging.getLogger(__name__)


class LinearModelTable(Table):
    """
    Resolves the terms of the linear model of a parameter. The query columns
    are, in order: first source descriptor, second source descriptor (NULL for
    a one-descriptor term) and coefficient.

    Methods:
        get_terms: Get the terms of the linear model computing a parameter.
    """

    table_name = "LinearModels"
    query_key = QueryKey.LINEAR_MODELS

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: DatabaseConfig,
        descriptors: "DescriptorTable",
        lock: threading.RLock = None,
    ):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            descriptors: The table the source descriptors are resolved from.
            lock: The lock to serialize on.
        """
        super().__init__(connection, config, lock)
        self.descriptors = descriptors

    def _term(self, target: Parameter, row) -> LinearModelTerm:
        source1: Descriptor = self.descriptors.get_entry(row[0])
        source2: Optional[Descriptor] = self.descriptors.get_entry(row[1]) if row[1] is not None else None
        coefficient = row[2]
        if coefficient is None:
            LOG.error(f"Term {source1}*{source2} of the linear model of {target} has no coefficient.")
            raise IllegalRecordError(
                f"Linear model of parameter {target} has a term with no coefficient.", self.table_name
            )
        if source2 is None or source2.is_identity:
            descriptors = [source1]
        elif source1.is_identity:
            descriptors = [source2]
        else:
            descriptors = [source1, source2]
        return LinearModelTerm(target, descriptors, float(coefficient))

    def get_terms(self, target: Parameter) -> Optional[List[LinearModelTerm]]:
        """
        Get the terms of the linear model computing a parameter.

        The descriptors of the terms are resolved while the rows are read, with
        their parameters still incomplete. Those parameters are completed once
        the cursor of this table is closed.

        Args:
            target: The parameter computed by the linear model.

        Returns:
            The terms, or None if the parameter isn't computed by a linear model.

        Raises:
            IllegalRecordError: If a term has no coefficient.
            CatalogError: If a query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            statement = self._keyed_statement()
            with statement.execute(target.id) as rows:
                terms = [self._term(target, row) for row in rows]
            if not terms:
                return None
            self.descriptors.complete_parameters(descriptor for term in terms for descriptor in term.descriptors)
            LOG.debug(f"Resolved {len(terms)} linear model term(s) for parameter {target}.")
            return terms
