##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Tables of catch samples.

Samples are not looked up by key: a `SampleTable` is configured with filters
(time range, geographic area, minimal total catch) and then lists every
matching sample, ordered by time. Each requested species is read from a
column of the same name, appended to the configured query.
"""

import logging
import math
import sqlite3
import threading
from datetime import datetime
from enum import Enum
from typing import Any, List, Sequence

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import GeographicArea, LineSample, PointSample, Sample, TimeRange
from oceanscape.db_scripts.query_builder import SelectQuery
from oceanscape.db_scripts.tables.table import Table
from oceanscape.exceptions import IllegalRecordError


LOG = logging.getLogger(__name__)


class SampleShape(Enum):
    """
    The shapes of samples, each read from its own query.

    Attributes:
        POINT: Samples taken at a single location.
        LINE: Samples spread along a line, such as longline sets.
    """

    POINT = QueryKey.POINT_SAMPLES
    LINE = QueryKey.LINE_SAMPLES


def quote_identifier(name: str) -> str:
    """
    Quote a column name for use in SQL text.

    Args:
        name: The column name.

    Returns:
        The name between double quotes, with inner double quotes doubled.
    """
    return '"' + name.replace('"', '""') + '"'


class SampleTable(Table):
    """
    Lists the samples of one shape, with the catches of a set of species.

    The query columns are, in order: ID, cruise, time and longitude/latitude
    (for point samples), or ID, cruise, start time, start longitude/latitude
    and end longitude/latitude (for line samples). Timestamps are stored as ISO
    8601 text; naive timestamps are expressed in the configured time zone.

    Methods:
        set_time_range: Keep only samples taken within a time range.
        set_geographic_area: Keep only samples located within an area.
        set_minimum_total: Keep only samples whose total catch reaches a minimum.
        get_entries: List the matching samples.
    """

    table_name = "Samples"

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: DatabaseConfig,
        shape: SampleShape = SampleShape.POINT,
        species: Sequence[str] = (),
        lock: threading.RLock = None,
    ):
        """
        Args:
            connection: The connection the table queries.
            config: The database configuration.
            shape: The shape of the samples to list.
            species: The species whose catches are read.
            lock: The lock to serialize on.
        """
        super().__init__(connection, config, lock)
        self.shape = shape
        self.species: List[str] = list(species)
        self.time_range: TimeRange = None
        self.area: GeographicArea = None
        self.minimum_total: float = None

    @property
    def query_key(self) -> QueryKey:  # pylint: disable=invalid-overridden-method
        return self.shape.value

    def __repr__(self) -> str:
        return f"SampleTable(shape={self.shape.name}, species={self.species})"

    def _invalidate(self):
        if self.statement is not None:
            self.statement.close()
            self.statement = None

    def set_time_range(self, start: datetime = None, end: datetime = None):
        """
        Keep only samples whose time lies between `start` and `end`, bounds included.

        Args:
            start: The earliest sample time, or None.
            end: The latest sample time, or None.
        """
        with self._lock:
            self._check_open()
            self.time_range = TimeRange(start, end) if start is not None or end is not None else None
            self._invalidate()

    def set_geographic_area(self, area: GeographicArea = None):
        """
        Keep only samples whose coordinate lies within `area`. The coordinate of
        a line sample is the middle of its line.

        Args:
            area: The area, or None to remove the constraint.
        """
        with self._lock:
            self._check_open()
            self.area = area
            self._invalidate()

    def set_minimum_total(self, minimum: float = None):
        """
        Keep only samples whose total catch, over the requested species, is at
        least `minimum`.

        Args:
            minimum: The minimal total catch, or None to remove the constraint.
        """
        with self._lock:
            self._check_open()
            self.minimum_total = minimum
            self._invalidate()

    def _coordinate_expressions(self, query: SelectQuery) -> List[str]:
        if self.shape is SampleShape.POINT:
            return [query.columns[3], query.columns[4]]
        start_x, start_y, end_x, end_y = query.columns[3:7]
        return [
            f"COALESCE(({start_x} + {end_x}) / 2.0, {start_x}, {end_x})",
            f"COALESCE(({start_y} + {end_y}) / 2.0, {start_y}, {end_y})",
        ]

    def _to_database_time(self, time: datetime) -> str:
        if time.tzinfo is not None:
            time = time.astimezone(self.config.tzinfo).replace(tzinfo=None)
        return time.isoformat(sep=" ")

    def _build(self):
        """Render the SQL text and the parameters of the current filters."""
        query = self.query
        time_column = query.columns[2]
        predicates: List[str] = []
        params: List[Any] = []
        if self.time_range is not None:
            if self.time_range.start is not None:
                predicates.append(f"{time_column} >= ?")
                params.append(self._to_database_time(self.time_range.start))
            if self.time_range.end is not None:
                predicates.append(f"{time_column} <= ?")
                params.append(self._to_database_time(self.time_range.end))
        if self.area is not None:
            x, y = self._coordinate_expressions(query)
            predicates.append(f"{x} BETWEEN ? AND ?")
            predicates.append(f"{y} BETWEEN ? AND ?")
            params.extend([self.area.west, self.area.east, self.area.south, self.area.north])
        if self.minimum_total is not None:
            total = " + ".join(f"COALESCE({quote_identifier(name)}, 0)" for name in self.species) or "0"
            predicates.append(f"({total}) >= ?")
            params.append(self.minimum_total)
        query = query.with_columns(*[quote_identifier(name) for name in self.species])
        return query.render_filtered(predicates), params

    def _parse_time(self, value: Any, sample_id: int) -> datetime:
        if value is None:
            LOG.error(f"Sample {sample_id} of '{self.table_name}' has no time.")
            raise IllegalRecordError(f"Sample {sample_id} has no time.", self.table_name)
        time = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
        if time.tzinfo is None:
            time = time.replace(tzinfo=self.config.tzinfo)
        return time

    def _amounts(self, values: Sequence[Any]) -> dict:
        return {name: float(value) for name, value in zip(self.species, values) if value is not None}

    def create_entry(self, row) -> Sample:
        """
        Build a sample from a row.

        Args:
            row: The current row.

        Returns:
            A `PointSample` or a `LineSample`, depending on the shape of this table.
        """
        values = tuple(row)
        sample_id, cruise = values[0], values[1]
        time = self._parse_time(values[2], sample_id)
        if self.shape is SampleShape.POINT:
            return PointSample(
                id=sample_id,
                cruise=cruise,
                time=time,
                longitude=_coordinate(values[3]),
                latitude=_coordinate(values[4]),
                amounts=self._amounts(values[5:]),
            )
        return LineSample(
            id=sample_id,
            cruise=cruise,
            time=time,
            start_longitude=_coordinate(values[3]),
            start_latitude=_coordinate(values[4]),
            end_longitude=_coordinate(values[5]),
            end_latitude=_coordinate(values[6]),
            amounts=self._amounts(values[7:]),
        )

    def get_entries(self) -> List[Sample]:
        """
        List the samples matching the current filters, ordered by time.

        Returns:
            A list of samples.

        Raises:
            IllegalRecordError: If a sample has no time.
            CatalogError: If the query fails or the table is closed.
        """
        with self._lock:
            self._check_open()
            sql, params = self._build()
            statement = self.statement if self.statement is not None else self._prepare(sql)
            with statement.execute(*params) as rows:
                samples = [self.create_entry(row) for row in rows]
            LOG.debug(f"Read {len(samples)} {self.shape.name.lower()} sample(s).")
            return samples


def _coordinate(value: Any) -> float:
    return float(value) if value is not None else math.nan
