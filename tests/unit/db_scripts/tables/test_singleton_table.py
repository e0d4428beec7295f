##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Tests for the `singleton_table.py` module, through the simplest singleton
tables (operations and relative positions).
"""

import pytest

from oceanscape.config.configfile import DatabaseConfig
from oceanscape.config.queries import QueryKey
from oceanscape.db_scripts.data_models import Operation, RelativePosition
from oceanscape.db_scripts.query_builder import QueryMode
from oceanscape.db_scripts.tables.operation_table import OperationTable
from oceanscape.db_scripts.tables.relative_position_table import RelativePositionTable
from oceanscape.exceptions import CatalogError, CursorBusyError, IllegalRecordError, NoSuchRecordError
from tests.fixture_types import FixtureConfig, FixtureConnection, FixtureSpy, FixtureStr


# pylint: disable=redefined-outer-name


@pytest.fixture
def duplicates_config(connection: FixtureConnection, sample_db_path: FixtureStr) -> FixtureConfig:
    """
    A configuration reading operations from a table holding duplicate rows:
    ID 7 appears twice with the same contents, ID 8 twice with different names.

    Args:
        connection: An open connection to the seeded database.
        sample_db_path: The path to the seeded database.

    Returns:
        A `DatabaseConfig` whose operations query reads `raw_operations`.
    """
    connection.executescript(
        """
        CREATE TABLE raw_operations (
            id INTEGER, name TEXT, column_name TEXT, prefix TEXT, operation TEXT, remarks TEXT
        );
        INSERT INTO raw_operations VALUES (7, 'mean', 'mean', 'avg_', 'mean', NULL);
        INSERT INTO raw_operations VALUES (7, 'mean', 'mean', 'avg_', 'mean', NULL);
        INSERT INTO raw_operations VALUES (8, 'max', 'max', 'max_', 'max', NULL);
        INSERT INTO raw_operations VALUES (8, 'maximum', 'max', 'max_', 'max', NULL);
        """
    )
    connection.commit()
    return DatabaseConfig(path=sample_db_path, queries={"operations": {"table": "raw_operations"}})


class FlakyOperationTable(OperationTable):
    """An operation table whose completion step fails a given number of times."""

    def __init__(self, *args, failures: int = 1, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = failures
        self.completed = []

    def post_create_entry(self, entry: Operation):
        if self.failures > 0:
            self.failures -= 1
            raise CatalogError("completion failed", self.table_name)
        self.completed.append(entry)


class ReentrantOperationTable(OperationTable):
    """An operation table that (wrongly) queries itself while its cursor is open."""

    def create_entry(self, row) -> Operation:
        if row[0] == 2:
            self.get_entry(1)
        return super().create_entry(row)


class TestLookups:
    """Tests for `get_entry`."""

    def test_lookup_by_id_and_name(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that records are found by ID and by name, with every column mapped.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with OperationTable(connection, database_config) as table:
            sobel = table.get_entry(2)
            assert sobel == Operation(2, "sobel3", "sobel3", "grad_", "sobel3", "3x3 edge filter")
            assert table.get_entry("pixel value").id == 1

    def test_same_instance_for_every_lookup(
        self, connection: FixtureConnection, database_config: FixtureConfig, query_spy: FixtureSpy
    ):
        """
        Test that repeated lookups by ID or by name return the very same object
        and only the first one queries the database.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
            query_spy: A spy on statement executions.
        """
        with OperationTable(connection, database_config) as table:
            first = table.get_entry(1)
            assert table.get_entry(1) is first
            assert table.get_entry("pixel value") is first
        assert query_spy.call_count == 1

    def test_statement_is_rebuilt_only_when_the_mode_changes(
        self, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that consecutive lookups in the same mode reuse the prepared statement.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with RelativePositionTable(connection, database_config) as table:
            table.get_entry(0)
            statement = table.statement
            table.get_entry(1)
            assert table.statement is statement
            table.get_entry("+05")
            assert table.statement is not statement
            assert table._mode is QueryMode.BY_NAME  # pylint: disable=protected-access

    def test_missing_record(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a key without rows raises `NoSuchRecordError`.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with OperationTable(connection, database_config) as table:
            with pytest.raises(NoSuchRecordError, match="99"):
                table.get_entry(99)
            with pytest.raises(NoSuchRecordError, match="unknown"):
                table.get_entry("unknown")

    def test_duplicate_records(self, connection: FixtureConnection, duplicates_config: FixtureConfig):
        """
        Test that rows resolving to different entities for one key raise
        `IllegalRecordError`, while equal rows resolve to a single entity.

        Args:
            connection: An open connection to the seeded database.
            duplicates_config: A configuration reading operations with duplicate rows.
        """
        with OperationTable(connection, duplicates_config) as table:
            assert table.get_entry(7) == Operation(7, "mean", "mean", "avg_", "mean")
            with pytest.raises(IllegalRecordError, match="more than one record"):
                table.get_entry(8)
            assert 8 not in table._cache  # pylint: disable=protected-access

    @pytest.mark.parametrize("identifier", [1.0, None, True, [1]])
    def test_invalid_identifier(self, connection: FixtureConnection, database_config: FixtureConfig, identifier):
        """
        Test that only int IDs and str names are accepted.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
            identifier: An invalid identifier.
        """
        with OperationTable(connection, database_config) as table:
            with pytest.raises(TypeError):
                table.get_entry(identifier)

    def test_querying_while_the_cursor_is_open(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a table querying itself from `create_entry` is stopped by the cursor guard.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ReentrantOperationTable(connection, database_config) as table:
            with pytest.raises(CursorBusyError):
                table.get_entry(2)
            assert not table.statement.is_open
            assert table.get_entry(1).name == "pixel value"


class TestCompletionRollback:
    """Tests for the failure of `post_create_entry`."""

    def test_failed_completion_is_not_cached(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that an entity whose completion failed is evicted, and that the next
        lookup resolves it again from scratch.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with FlakyOperationTable(connection, database_config) as table:
            with pytest.raises(CatalogError, match="completion failed"):
                table.get_entry("sobel3")
            assert len(table._cache) == 0  # pylint: disable=protected-access

            sobel = table.get_entry("sobel3")
            assert table.completed == [sobel]
            assert table.get_entry(2) is sobel


class TestGetAll:
    """Tests for `get_all`."""

    def test_lists_in_query_order(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that every record is listed in the order of the query, and cached.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with RelativePositionTable(connection, database_config) as table:
            positions = table.get_all()
            assert [position.name for position in positions] == ["-05", "+00", "+05"]
            assert table.get_entry("+05") is positions[2]
            assert positions[1] == RelativePosition.NULL

    def test_list_refreshes_the_cache(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a record removed from the database is no longer served after
        `get_all`, while other records get fresh instances.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with OperationTable(connection, database_config) as table:
            table.get_all()
            sobel = table.get_entry(2)
            pixel = table.get_entry(1)

            connection.execute("DELETE FROM operations WHERE id = 2")
            connection.commit()
            assert table.get_entry(2) is sobel

            assert table.get_all() == [pixel]
            with pytest.raises(NoSuchRecordError):
                table.get_entry(2)
            assert table.get_entry(1) is not pixel

    def test_list_rejects_duplicates(self, connection: FixtureConnection, duplicates_config: FixtureConfig):
        """
        Test that listing rows that give different entities for one key fails.

        Args:
            connection: An open connection to the seeded database.
            duplicates_config: A configuration reading operations with duplicate rows.
        """
        with OperationTable(connection, duplicates_config) as table:
            with pytest.raises(IllegalRecordError):
                table.get_all()

    def test_list_runs_completion_after_the_cursor_is_closed(
        self, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that `post_create_entry` runs on every listed entity.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with FlakyOperationTable(connection, database_config, failures=0) as table:
            operations = table.get_all()
            assert table.completed == operations
            assert not table.statement.is_open


class TestClose:
    """Tests for closing a table."""

    def test_closed_table_refuses_queries(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a closed table clears its cache and raises on every lookup.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        table = OperationTable(connection, database_config)
        table.get_entry(1)
        table.close()
        table.close()

        assert table.closed
        assert table.statement is None
        assert len(table._cache) == 0  # pylint: disable=protected-access
        with pytest.raises(CatalogError, match="closed"):
            table.get_entry(1)
        with pytest.raises(CatalogError, match="closed"):
            table.get_all()

    def test_query_key(self, database_config: FixtureConfig):
        """
        Test that each table reads its own configured query.

        Args:
            database_config: A configuration pointing at the seeded database.
        """
        table = RelativePositionTable(None, database_config)
        assert table.query is database_config.get_query(QueryKey.POSITIONS)
