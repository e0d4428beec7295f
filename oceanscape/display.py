##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Text rendering of sample database entities for the command line.
"""

from typing import Any, Callable, Dict, List, Sequence, Tuple

from tabulate import tabulate

from oceanscape.db_scripts.data_models import (
    Descriptor,
    LogScaledDescriptor,
    Operation,
    Parameter,
    RelativePosition,
    ScaledDescriptor,
)


def _parameter_row(parameter: Parameter) -> List[Any]:
    if parameter.components:
        derivation = "combination"
    elif parameter.linear_model is not None:
        derivation = "linear model"
    else:
        derivation = ""
    return [parameter.id, parameter.name, parameter.series, parameter.series2, parameter.band, derivation]


def _operation_row(operation: Operation) -> List[Any]:
    return [operation.id, operation.name, operation.column, operation.prefix, operation.operation]


def _position_row(position: RelativePosition) -> List[Any]:
    return [position.id, position.name, position.time_lag, position.remarks or ""]


def _descriptor_row(descriptor: Descriptor) -> List[Any]:
    normalization = ""
    if isinstance(descriptor, ScaledDescriptor):
        normalization = f"{descriptor.scale:g}*x + {descriptor.offset:g}"
        if isinstance(descriptor, LogScaledDescriptor):
            normalization = f"log({normalization})"
    distribution = getattr(descriptor.distribution, "name", descriptor.distribution)
    return [
        descriptor.name,
        descriptor.parameter,
        descriptor.position,
        descriptor.operation,
        distribution,
        normalization,
    ]


# Keyed by the `list` command choices
TABLE_LAYOUTS: Dict[str, Tuple[Sequence[str], Callable[[Any], List[Any]]]] = {
    "parameters": (["ID", "Name", "Series", "Series 2", "Band", "Derived from"], _parameter_row),
    "operations": (["ID", "Name", "Column", "Prefix", "Operation"], _operation_row),
    "positions": (["ID", "Name", "Time lag", "Remarks"], _position_row),
    "descriptors": (["Name", "Parameter", "Position", "Operation", "Distribution", "Normalization"], _descriptor_row),
}


def format_entries(kind: str, entries: Sequence[Any]) -> str:
    """
    Render a list of entities as a table.

    Args:
        kind: The kind of entities, one of the keys of `TABLE_LAYOUTS`.
        entries: The entities.

    Returns:
        The table, as text.
    """
    headers, to_row = TABLE_LAYOUTS[kind]
    return tabulate([to_row(entry) for entry in entries], headers=headers)


def format_derivation(parameter: Parameter) -> str:
    """
    Render how a parameter is computed: its linear model terms or its components.

    Args:
        parameter: A complete parameter.

    Returns:
        The derivation as a table, or a message if the parameter isn't derived.
    """
    if parameter.linear_model is not None:
        rows = [
            [f"{term.coefficient:g}", " * ".join(str(descriptor) for descriptor in term.descriptors)]
            for term in parameter.linear_model
        ]
        return f"{parameter} = sum of:\n" + tabulate(rows, headers=["Coefficient", "Descriptors"])
    if parameter.components:
        rows = [
            [f"{component.weight:g}", component.source, component.position, component.operation, component.logarithm]
            for component in parameter.components
        ]
        return f"{parameter} = sum of:\n" + tabulate(
            rows, headers=["Weight", "Source", "Position", "Operation", "Logarithm"]
        )
    return f"{parameter} is not derived from other parameters."
