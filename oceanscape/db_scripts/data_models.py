##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module houses the entities resolved from the sample database: parameters,
operations, relative positions, descriptors, linear model terms, parameter
components and samples.

Most entities are immutable once built. `Parameter` is the exception: it is
built in two phases because a parameter may be derived from a linear model
whose descriptors refer to other parameters (possibly itself). A parameter
first exists with only its ID ("incomplete"), then its fields are set exactly
once by `Parameter.complete`, and its derivation is attached afterwards.
"""

import logging
import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from functools import total_ordering
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple

from oceanscape.exceptions import IllegalEntryStateError


LOG = logging.getLogger(__name__)


def same_bits(first: float, second: float) -> bool:
    """
    Compare two floats by their IEEE 754 bit patterns, so that NaNs compare equal
    to themselves and `0.0` differs from `-0.0`.

    Args:
        first: A float.
        second: Another float.

    Returns:
        True if both floats have the same bit pattern.
    """
    return struct.pack("<d", first) == struct.pack("<d", second)


@dataclass(frozen=True)
class Operation:
    """
    A transform applied to a parameter when its data are read.

    Attributes:
        id: The numeric ID of the operation.
        name: The name of the operation (e.g. "pixel value", "sobel3").
        column: The column name used for values extracted with this operation.
        prefix: The prefix of composite names built with this operation.
        operation: The name of the underlying processor operation.
        remarks: Optional remarks.
    """

    id: int
    name: str
    column: Optional[str] = None
    prefix: Optional[str] = None
    operation: Optional[str] = None
    remarks: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@total_ordering
@dataclass(frozen=True, eq=True)
class RelativePosition:
    """
    A time offset relative to a sample, used to read environmental data before,
    at or after the sample. Positions sort by the magnitude of their offset.

    Attributes:
        id: The numeric ID of the position.
        name: The name of the position (e.g. "-05").
        time_lag_ms: The signed offset, in milliseconds.
        remarks: Optional remarks.
        NULL: The position standing for "no offset".
    """

    NULL: ClassVar["RelativePosition"]

    id: int
    name: str
    time_lag_ms: int = 0
    remarks: Optional[str] = None

    def __str__(self) -> str:
        return self.name

    def __lt__(self, other: "RelativePosition") -> bool:
        if not isinstance(other, RelativePosition):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def _sort_key(self) -> Tuple[int, int, int]:
        return (abs(self.time_lag_ms), self.time_lag_ms, self.id)

    @property
    def time_lag(self) -> timedelta:
        """The offset as a `timedelta`."""
        return timedelta(milliseconds=self.time_lag_ms)

    def apply_to(self, time: datetime) -> datetime:
        """
        Shift a sample time by this position's offset.

        Args:
            time: The time of the sample.

        Returns:
            The time at which environmental data should be read.
        """
        return time + self.time_lag


RelativePosition.NULL = RelativePosition(id=0, name="+00", time_lag_ms=0)


class Parameter:  # pylint: disable=too-many-instance-attributes
    """
    An environmental quantity, read from up to two data series or derived either
    from a weighted combination of other parameters or from a linear model.

    A parameter can exist in an incomplete state holding only its ID. This lets a
    descriptor embed a stable parameter object without resolving it immediately.
    The remaining fields are set once by `complete`.

    Attributes:
        id: The numeric ID. ID 0 is the identity parameter.
        series: The ID of the main data series, or None.
        series2: The ID of the alternate data series, or None.
        band: The band index in the series.
        remarks: Optional remarks.
    """

    IDENTITY_ID: ClassVar[int] = 0

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        id: int,  # pylint: disable=redefined-builtin
        name: str = None,
        series: int = None,
        series2: int = None,
        band: int = 0,
        remarks: str = None,
    ):
        self.id: int = id
        self._name: Optional[str] = name
        self.series: Optional[int] = series
        self.series2: Optional[int] = series2
        self.band: int = band
        self.remarks: Optional[str] = remarks
        self._components: Optional[List["Component"]] = None
        self._linear_model: Optional[List["LinearModelTerm"]] = None
        self._linear_model_resolved: bool = False

    def __repr__(self) -> str:
        state = "" if self.is_complete else ", incomplete"
        return f"Parameter(id={self.id}, name={self._name!r}{state})"

    def __str__(self) -> str:
        return self._name if self._name is not None else f"#{self.id}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return (
            self.id == other.id
            and self._name == other._name
            and self.series == other.series
            and self.series2 == other.series2
            and self.band == other.band
        )

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def name(self) -> Optional[str]:
        """The name of the parameter, or None while it is incomplete."""
        return self._name

    @property
    def is_complete(self) -> bool:
        """True once the fields read from the parameter's own row have been set."""
        return self._name is not None

    @property
    def is_identity(self) -> bool:
        """True for the identity parameter, the neutral factor of linear model terms."""
        return self.id == self.IDENTITY_ID

    def complete(self, name: str, series: int = None, series2: int = None, band: int = 0, remarks: str = None):
        """
        Set the fields of an incomplete parameter.

        Args:
            name: The name of the parameter. Must not be None.
            series: The ID of the main data series.
            series2: The ID of the alternate data series.
            band: The band index.
            remarks: Optional remarks.

        Raises:
            IllegalEntryStateError: If the parameter is already complete.
            ValueError: If `name` is None.
        """
        if self.is_complete:
            raise IllegalEntryStateError(f"Parameter {self.id} ('{self._name}') is already complete.")
        if name is None:
            raise ValueError(f"Parameter {self.id} can't be completed without a name.")
        self._name = name
        self.series = series
        self.series2 = series2
        self.band = band
        self.remarks = remarks

    def reset(self):
        """
        Bring the parameter back to its incomplete, ID-only state. Used to roll back
        a completion that failed half-way.
        """
        self._name = None
        self.series = None
        self.series2 = None
        self.band = 0
        self.remarks = None
        self._components = None
        self._linear_model = None
        self._linear_model_resolved = False

    @property
    def components(self) -> Optional[List["Component"]]:
        """The components this parameter combines, or None if not resolved yet."""
        return self._components

    @property
    def has_components(self) -> bool:
        """True once the components have been resolved (possibly to an empty list)."""
        return self._components is not None

    def init_components(self, components: Sequence["Component"]):
        """
        Set the components of this parameter.

        Args:
            components: The components. An empty sequence means the parameter is
                not a combination.

        Raises:
            IllegalEntryStateError: If the components were already set.
        """
        if self._components is not None:
            raise IllegalEntryStateError(f"Components of parameter {self} are already initialized.")
        self._components = list(components)

    @property
    def linear_model(self) -> Optional[List["LinearModelTerm"]]:
        """The terms of the linear model, or None if the parameter isn't derived from one."""
        return self._linear_model

    @property
    def has_linear_model(self) -> bool:
        """True once the linear model has been resolved (possibly to None)."""
        return self._linear_model_resolved

    def set_linear_model(self, terms: Optional[Sequence["LinearModelTerm"]]):
        """
        Set the linear model of this parameter.

        Args:
            terms: The terms, or None if the parameter isn't derived from a linear model.

        Raises:
            IllegalEntryStateError: If the linear model was already set.
        """
        if self._linear_model_resolved:
            raise IllegalEntryStateError(f"Linear model of parameter {self} is already set.")
        self._linear_model = list(terms) if terms is not None else None
        self._linear_model_resolved = True

    @property
    def is_derived(self) -> bool:
        """True if the parameter is computed from other parameters or descriptors."""
        return bool(self._components) or self._linear_model is not None


@dataclass(frozen=True)
class Component:
    """
    One weighted source of a parameter built as a combination of other parameters.

    Attributes:
        source: The source parameter.
        position: The relative position the source is read at.
        operation: The operation applied to the source.
        weight: The weight of the source in the combination.
        logarithm: True if the logarithm of the source is combined.
    """

    source: Parameter
    position: RelativePosition
    operation: Operation
    weight: float = 1.0
    logarithm: bool = False

    def __str__(self) -> str:
        source = f"log({self.source})" if self.logarithm else str(self.source)
        return f"{self.weight:g}*{self.operation.prefix or ''}{source}{self.position}"

    def apply(self, value: float) -> float:
        """
        Compute the contribution of a source value to the combination.

        Args:
            value: The value read from the source.

        Returns:
            The weighted (and optionally log-transformed) value.
        """
        if self.logarithm:
            value = math.log(value)
        return self.weight * value


class Distribution(IntEnum):
    """Known distribution codes of descriptor values. Other codes are allowed."""

    NORMAL = 0
    LOG_NORMAL = 1
    CHI2 = 2


class Descriptor:
    """
    A descriptor of the oceanic landscape: a parameter read at a relative
    position through an operation, with the distribution of its values.

    The base class applies no change of variable. `ScaledDescriptor` and
    `LogScaledDescriptor` normalize values before statistical use.

    Attributes:
        name: The short name of the descriptor.
        parameter: The environmental parameter. It may still be incomplete when
            the descriptor is built.
        position: The relative position.
        operation: The operation applied.
        distribution: The distribution code (see `Distribution`).
    """

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        name: str,
        parameter: Parameter,
        position: RelativePosition,
        operation: Operation,
        distribution: int = Distribution.NORMAL,
    ):
        self.name = name
        self.parameter = parameter
        self.position = position
        self.operation = operation
        self.distribution = distribution

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, id={self.id})"

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if other is None or type(other) is not type(self):
            return False
        return (
            self.name == other.name
            and self.parameter == other.parameter
            and self.position == other.position
            and self.operation == other.operation
            and self.distribution == other.distribution
        )

    def __hash__(self) -> int:
        return hash((self.name, self.id))

    @property
    def id(self) -> Tuple[int, int, int, int]:
        """The identity of the descriptor: parameter, position, operation and distribution IDs."""
        return (self.parameter.id, self.position.id, self.operation.id, int(self.distribution))

    @property
    def remarks(self) -> Optional[str]:
        """Descriptors carry no remarks."""
        return None

    @property
    def is_identity(self) -> bool:
        """True if this descriptor can be omitted from linear model terms."""
        return self.parameter.is_identity

    def normalize(self, value: float) -> float:
        """
        Apply the change of variable of this descriptor. None here.

        Args:
            value: A raw value.

        Returns:
            The value unchanged.
        """
        return value


class ScaledDescriptor(Descriptor):
    """
    A descriptor whose values are transformed by `value*scale + offset`, to
    center and reduce the distribution.
    """

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        name: str,
        parameter: Parameter,
        position: RelativePosition,
        operation: Operation,
        distribution: int,
        scale: float,
        offset: float,
    ):
        super().__init__(name, parameter, position, operation, distribution)
        self.scale = scale
        self.offset = offset

    def __eq__(self, other: object) -> bool:
        if super().__eq__(other):
            return same_bits(self.scale, other.scale) and same_bits(self.offset, other.offset)
        return False

    def __hash__(self) -> int:
        return hash((super().__hash__(), self.scale, self.offset))

    def normalize(self, value: float) -> float:
        """Compute `value*scale + offset`."""
        return self.scale * value + self.offset


class LogScaledDescriptor(ScaledDescriptor):
    """A descriptor of log-normally distributed values: `log(value*scale + offset)`."""

    def __hash__(self) -> int:
        return hash((super().__hash__(), "log"))

    def normalize(self, value: float) -> float:
        """Compute `log(value*scale + offset)`."""
        return math.log(super().normalize(value))


class LinearModelTerm:
    """
    One term of a linear model: the product of one or two descriptors, scaled by
    a coefficient.

    Attributes:
        target: The parameter the linear model computes.
        descriptors: The one or two descriptors multiplied together.
        coefficient: The coefficient of the term.
    """

    def __init__(self, target: Parameter, descriptors: Sequence[Descriptor], coefficient: float):
        if not 1 <= len(descriptors) <= 2:
            raise ValueError(f"A linear model term needs one or two descriptors, got {len(descriptors)}.")
        self.target = target
        self.descriptors: Tuple[Descriptor, ...] = tuple(descriptors)
        self.coefficient = coefficient

    def __repr__(self) -> str:
        return f"LinearModelTerm({self})"

    def __str__(self) -> str:
        return f"{self.coefficient:g}*" + "*".join(str(descriptor) for descriptor in self.descriptors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinearModelTerm):
            return NotImplemented
        return (
            self.target == other.target
            and same_bits(self.coefficient, other.coefficient)
            and self.descriptors == other.descriptors
        )

    def __hash__(self) -> int:
        return hash((self.target.id, self.descriptors, struct.pack("<d", self.coefficient)))

    def evaluate(self, values: Sequence[float]) -> float:
        """
        Compute the value of this term.

        Args:
            values: One raw value per descriptor, in the same order.

        Returns:
            `coefficient` times the product of the normalized values.
        """
        if len(values) != len(self.descriptors):
            raise ValueError(f"Expected {len(self.descriptors)} value(s) for term {self}, got {len(values)}.")
        result = self.coefficient
        for descriptor, value in zip(self.descriptors, values):
            result *= descriptor.normalize(value)
        return result


@dataclass(frozen=True)
class Sample(ABC):
    """
    A catch event.

    Attributes:
        id: The numeric ID of the sample.
        cruise: The ID of the cruise the sample belongs to.
        time: The time of the sample (start of fishing for line samples).
    """

    id: int
    cruise: int
    time: datetime

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def name(self) -> str:
        """Samples are named after their ID."""
        return str(self.id)

    @property
    @abstractmethod
    def coordinate(self) -> Tuple[float, float]:
        """The representative (longitude, latitude) of the sample."""
        raise NotImplementedError("Subclasses of `Sample` must implement a `coordinate` property.")

    @property
    @abstractmethod
    def catches(self) -> Dict[str, float]:
        """The amount caught per species."""
        raise NotImplementedError("Subclasses of `Sample` must implement a `catches` property.")

    def get_value(self, species: str) -> float:
        """
        Get the amount caught for one species.

        Args:
            species: The species name.

        Returns:
            The amount, or 0 if the species wasn't caught.
        """
        return self.catches.get(species, 0.0)

    @property
    def total(self) -> float:
        """The amount caught, all species together."""
        return sum(self.catches.values())

    @property
    def dominant_species(self) -> Optional[str]:
        """The species with the largest catch, or None if there are no species."""
        if not self.catches:
            return None
        return max(self.catches, key=self.catches.get)

    def is_within(self, time_range: "TimeRange" = None, area: "GeographicArea" = None) -> bool:
        """
        Check whether the sample falls within a time range and a geographic area.

        Args:
            time_range: The time range, or None for no time constraint.
            area: The area the sample's `coordinate` must lie in, or None.

        Returns:
            True if the sample satisfies both constraints.
        """
        if time_range is not None and not time_range.contains(self.time):
            return False
        return area is None or area.contains(*self.coordinate)


@dataclass(frozen=True)
class PointSample(Sample):
    """
    A sample located at a single point.

    Attributes:
        longitude: The longitude of the sample.
        latitude: The latitude of the sample.
        amounts: The amount caught per species.
    """

    longitude: float = math.nan
    latitude: float = math.nan
    amounts: Dict[str, float] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def coordinate(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)

    @property
    def catches(self) -> Dict[str, float]:
        return self.amounts


@dataclass(frozen=True)
class LineSample(Sample):
    """
    A sample spread along a line, such as a longline set.

    Attributes:
        start_longitude: The longitude where fishing started.
        start_latitude: The latitude where fishing started.
        end_longitude: The longitude where fishing ended.
        end_latitude: The latitude where fishing ended.
        amounts: The amount caught per species.
    """

    start_longitude: float = math.nan
    start_latitude: float = math.nan
    end_longitude: float = math.nan
    end_latitude: float = math.nan
    amounts: Dict[str, float] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def coordinate(self) -> Tuple[float, float]:
        """The middle of the line, or its known end when the other one is missing."""
        return (
            _midpoint(self.start_longitude, self.end_longitude),
            _midpoint(self.start_latitude, self.end_latitude),
        )

    @property
    def catches(self) -> Dict[str, float]:
        return self.amounts


def _midpoint(first: float, second: float) -> float:
    if math.isnan(first):
        return second
    if math.isnan(second):
        return first
    return (first + second) / 2


@dataclass(frozen=True)
class TimeRange:
    """
    A time interval. A None bound leaves that side of the interval open.

    Attributes:
        start: The earliest time included.
        end: The latest time included.
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"Time range starts ({self.start}) after it ends ({self.end}).")

    def contains(self, time: datetime) -> bool:
        """True if `time` lies within the range, bounds included."""
        if self.start is not None and time < self.start:
            return False
        return self.end is None or time <= self.end


@dataclass(frozen=True)
class GeographicArea:
    """
    A longitude/latitude bounding box, bounds included.

    Attributes:
        west: The minimal longitude.
        south: The minimal latitude.
        east: The maximal longitude.
        north: The maximal latitude.
    """

    west: float
    south: float
    east: float
    north: float

    def __post_init__(self):
        if self.west > self.east or self.south > self.north:
            raise ValueError(f"Empty geographic area: {self}")

    def contains(self, longitude: float, latitude: float) -> bool:
        """True if the point lies within the area. NaN coordinates are never contained."""
        return self.west <= longitude <= self.east and self.south <= latitude <= self.north
