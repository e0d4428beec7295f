##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module provides functionality for locating and loading the application
configuration file (`oceanscape.yaml`) and for building the `DatabaseConfig`
object handed to every table of the sample database.

Tables never read global state: the database path, the time zone of sample
timestamps and the SQL query definitions all come from the `DatabaseConfig`
they were constructed with.
"""
import logging
import os
from typing import Dict, Optional, Union
from zoneinfo import ZoneInfo

from oceanscape.config import Config
from oceanscape.config.queries import DEFAULT_QUERIES, QueryKey
from oceanscape.db_scripts.query_builder import SelectQuery
from oceanscape.utils import load_yaml, namespace_to_dict


LOG: logging.Logger = logging.getLogger(__name__)

APP_FILENAME = "oceanscape.yaml"
OCEANSCAPE_HOME = os.path.join(os.path.expanduser("~"), ".oceanscape")
DEFAULT_DATABASE_PATH = os.path.join(OCEANSCAPE_HOME, "samples.db")
DEFAULT_TIMEZONE = "UTC"


def load_config(filepath: str) -> Optional[Dict]:
    """
    Reads an Oceanscape YAML configuration file and returns its contents as a dictionary.

    Args:
        filepath: The path to the YAML configuration file.

    Returns:
        A dictionary containing the contents of the YAML file or None if file doesn't exist.
    """
    if not os.path.isfile(filepath):
        LOG.info(f"No app config file at {filepath}")
        return None
    LOG.info(f"Reading app config from file {filepath}")
    return load_yaml(filepath) or {}


def find_config_file(path: str = None) -> Optional[str]:
    """
    Locate the application configuration file (`oceanscape.yaml`).

    If no directory is provided, the current working directory is checked first,
    then the `OCEANSCAPE_HOME` directory. If a `path` is explicitly provided, only
    that directory is checked.

    Args:
        path: A specific directory to look for `oceanscape.yaml`.

    Returns:
        The full path to the `oceanscape.yaml` file if found, otherwise `None`.
    """
    if path is None:
        local_app = os.path.join(os.getcwd(), APP_FILENAME)
        if os.path.isfile(local_app):
            return local_app

        path_app = os.path.join(OCEANSCAPE_HOME, APP_FILENAME)
        if os.path.isfile(path_app):
            return path_app

        return None

    app_path = os.path.join(path, APP_FILENAME)
    if os.path.exists(app_path):
        return app_path

    return None


def get_config(filepath: str = None) -> Config:
    """
    Load the application configuration.

    Args:
        filepath: An explicit configuration file. When omitted, `find_config_file`
            is used, and the defaults apply if no file is found.

    Returns:
        A `Config` object.
    """
    if filepath is None:
        filepath = find_config_file()
    app_dict = load_config(filepath) if filepath else None
    if app_dict is None:
        LOG.debug("Using the default configuration.")
        app_dict = {}
    return Config(app_dict)


class DatabaseConfig:
    """
    The explicit configuration of a sample database connection.

    Attributes:
        path: The SQLite database file.
        timezone: The name of the time zone sample timestamps are expressed in.
        queries: The effective query of each `QueryKey`, after overrides.

    Methods:
        get_query: Get the query definition for a key.
        from_config: Build a `DatabaseConfig` from a `Config` object.
        load: Build a `DatabaseConfig` from the application file.
    """

    def __init__(
        self,
        path: str = DEFAULT_DATABASE_PATH,
        timezone: str = DEFAULT_TIMEZONE,
        queries: Dict[Union[QueryKey, str], Union[Dict, SelectQuery]] = None,
    ):
        """
        Args:
            path: The SQLite database file.
            timezone: The time zone of the sample timestamps.
            queries: Overrides for the default queries, keyed by `QueryKey` (or its
                value). Each override is either a complete `SelectQuery` or a
                dictionary of the fields to replace.

        Raises:
            ValueError: If an override names an unknown query.
        """
        self.path: str = os.path.expanduser(path)
        self.timezone: str = timezone
        self.queries: Dict[QueryKey, SelectQuery] = dict(DEFAULT_QUERIES)
        for key, override in (queries or {}).items():
            try:
                query_key = key if isinstance(key, QueryKey) else QueryKey(key)
            except ValueError as exc:
                valid = ", ".join(member.value for member in QueryKey)
                raise ValueError(f"Unknown query '{key}'. Valid queries are: {valid}") from exc
            if isinstance(override, SelectQuery):
                self.queries[query_key] = override
            else:
                self.queries[query_key] = self.queries[query_key].override(override)
            LOG.debug(f"Query '{query_key.value}' overridden by the configuration.")

    def __repr__(self) -> str:
        return f"DatabaseConfig(path={self.path!r}, timezone={self.timezone!r})"

    @property
    def tzinfo(self) -> ZoneInfo:
        """The time zone of sample timestamps."""
        return ZoneInfo(self.timezone)

    def get_query(self, key: QueryKey) -> SelectQuery:
        """
        Get the query definition for a key.

        Args:
            key: The query to look up.

        Returns:
            The effective `SelectQuery`.
        """
        return self.queries[key]

    @classmethod
    def from_config(cls, config: Config) -> "DatabaseConfig":
        """
        Build a `DatabaseConfig` from an application `Config`.

        Args:
            config: The application configuration.

        Returns:
            A `DatabaseConfig`; every missing setting takes its default.
        """
        database = namespace_to_dict(config.database) or {}
        queries = namespace_to_dict(config.queries) or {}
        return cls(
            path=database.get("path", DEFAULT_DATABASE_PATH),
            timezone=database.get("timezone", DEFAULT_TIMEZONE),
            queries=queries,
        )

    @classmethod
    def load(cls, filepath: str = None) -> "DatabaseConfig":
        """
        Build a `DatabaseConfig` from the application file.

        Args:
            filepath: An explicit configuration file, or None to search for one.

        Returns:
            A `DatabaseConfig`.
        """
        return cls.from_config(get_config(filepath))
