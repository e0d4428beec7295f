##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
This module contains pytest fixtures to be used throughout the entire test suite.
"""
import os
from glob import glob

import pytest
import yaml

from tests.fixture_types import FixtureCallable


# pylint: disable=redefined-outer-name


#######################################
# Loading in Module Specific Fixtures #
#######################################

tests_dir = os.path.dirname(os.path.abspath(__file__))
fixture_glob = os.path.join(tests_dir, "fixtures", "**", "*.py")
pytest_plugins = [
    "tests." + os.path.relpath(fixture_file, tests_dir).replace(os.sep, ".")[: -len(".py")]
    for fixture_file in glob(fixture_glob, recursive=True)
    if not fixture_file.endswith("__init__.py")
]


#######################################
######### Fixture Definitions #########
#######################################


@pytest.fixture
def write_app_yaml(tmp_path) -> FixtureCallable:
    """
    Fixture returning a helper that writes an `oceanscape.yaml` file.

    Args:
        tmp_path: PyTest tmp_path fixture.

    Returns:
        A function taking the configuration dictionary (and optionally the
        directory to write to) and returning the path of the new file.
    """

    def _write_app_yaml(contents: dict, directory: str = None) -> str:
        directory = directory if directory is not None else str(tmp_path)
        app_yaml = os.path.join(directory, "oceanscape.yaml")
        with open(app_yaml, "w") as app_file:
            yaml.dump(contents, app_file)
        return app_yaml

    return _write_app_yaml
