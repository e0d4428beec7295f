##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Used to store the application configuration.

The `config` package loads the `oceanscape.yaml` application file and turns it
into the explicit configuration objects the database tables are built with.

Modules:
    configfile.py: Locates and loads the application file and builds the
        `DatabaseConfig` passed to every table.
    queries.py: Enumerates the overridable queries and their defaults.
"""
from copy import copy
from types import SimpleNamespace
from typing import Dict, Optional

from oceanscape.utils import nested_dict_to_namespaces


class Config:  # pylint: disable=R0903
    """
    The Config class, meant to store all Oceanscape config settings in one place.

    Attributes:
        database (Optional[SimpleNamespace]): A namespace containing the database settings
            (`path`, `timezone`).
        queries (Optional[SimpleNamespace]): A namespace containing query overrides, one
            entry per `QueryKey` value.

    Methods:
        __copy__: Creates a shallow copy of the Config instance.
        __str__: Returns a formatted string representation of the Config instance.
        load_app_into_namespaces: Converts the provided configuration dictionary into namespaces
            and assigns them to the Config instance's attributes.
    """

    def __init__(self, app_dict: Dict):
        """
        Initializes the Config instance with configuration data from a dictionary.

        Args:
            app_dict: A dictionary containing configuration data for the application.
                The "database" and "queries" keys are converted into `SimpleNamespace`
                objects and assigned to the corresponding attributes.
        """
        self.database: Optional[SimpleNamespace]
        self.queries: Optional[SimpleNamespace]
        self.load_app_into_namespaces(app_dict or {})

    def __copy__(self) -> "Config":
        """
        Creates a shallow copy of the Config instance.

        Returns:
            A new Config instance with copied `database` and `queries` attributes.
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(
            {
                "database": copy(self.__dict__["database"]),
                "queries": copy(self.__dict__["queries"]),
            }
        )
        return result

    def __str__(self) -> str:
        """
        Returns a formatted string representation of the Config instance.

        Returns:
            A string with one line per configuration section.
        """
        formatted_str = "config:"
        for attr in ("database", "queries"):
            formatted_str += f"\n  {attr}:\n    {getattr(self, attr)}"
        return formatted_str

    def load_app_into_namespaces(self, app_dict: Dict):
        """
        Converts the provided configuration dictionary into namespaces.

        Args:
            app_dict: The dictionary loaded from the application file.
        """
        for field in ("database", "queries"):
            section = app_dict.get(field)
            setattr(self, field, nested_dict_to_namespaces(section) if section else None)
