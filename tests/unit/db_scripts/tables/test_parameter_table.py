##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Tests for the `parameter_table.py` module.
"""

import pytest
from pytest_mock import MockerFixture

from oceanscape.db_scripts.data_models import LogScaledDescriptor, Parameter, RelativePosition, ScaledDescriptor
from oceanscape.db_scripts.tables.descriptor_table import DescriptorTable
from oceanscape.db_scripts.tables.linear_model_table import LinearModelTable
from oceanscape.db_scripts.tables.parameter_table import ParameterTable
from oceanscape.exceptions import CatalogError, NoSuchRecordError
from tests.fixture_types import FixtureConfig, FixtureConnection, FixtureSpy
from tests.fixtures.database import queries_on


class TestLookups:
    """Tests for looking up complete parameters."""

    def test_plain_parameter(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a parameter read from data series is complete, with no
        components and no linear model.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            sst = table.get_entry("SST")
            assert sst.is_complete
            assert (sst.id, sst.series, sst.series2, sst.band) == (1, 10, 11, 0)
            assert sst.components == []
            assert sst.has_linear_model
            assert sst.linear_model is None
            assert not sst.is_derived
            assert table.get_entry(1) is sst

    def test_null_band_reads_as_zero(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a NULL band is read as band 0.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            assert table.get_entry(4).band == 0
            assert table.get_entry("SLA").band == 1

    def test_get_all_hides_the_identity(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that listing parameters skips the identity parameter, which can
        still be looked up directly.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            parameters = table.get_all()
            assert [parameter.name for parameter in parameters] == ["CHL", "EKE", "HAB", "PP", "SLA", "SST"]
            assert all(parameter.has_linear_model for parameter in parameters)
            assert table.get_entry(0).is_identity

    def test_unknown_parameter(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that an unknown name raises `NoSuchRecordError`.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            with pytest.raises(NoSuchRecordError):
                table.get_entry("NPP")


class TestIncompleteEntries:
    """Tests for `get_incomplete_entry` and `complete_entry`."""

    def test_incomplete_entry_issues_no_query(
        self, connection: FixtureConnection, database_config: FixtureConfig, query_spy: FixtureSpy
    ):
        """
        Test that an incomplete parameter is cached without querying the database.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
            query_spy: A spy on statement executions.
        """
        with ParameterTable(connection, database_config) as table:
            sst = table.get_incomplete_entry(1)
            assert not sst.is_complete
            assert sst.name is None
            assert table.get_incomplete_entry(1) is sst
        assert query_spy.call_count == 0

    def test_completion_keeps_the_instance(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that completing an incomplete parameter fills in the same object,
        which every later lookup returns.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            sst = table.get_incomplete_entry(1)
            assert table.complete_entry(sst) is sst
            assert sst.name == "SST"
            assert sst.has_linear_model
            assert table.get_entry("SST") is sst
            assert table.get_entry(1) is sst

    def test_lookup_completes_a_cached_incomplete_entry(
        self, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that `get_entry` completes an incomplete parameter found in the cache,
        whether it is looked up by ID or by name.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            chl = table.get_incomplete_entry(2)
            assert table.get_entry(2) is chl
            assert chl.is_complete

            sla = table.get_incomplete_entry(3)
            assert table.get_entry("SLA") is sla
            assert sla.is_complete and sla.has_linear_model

    def test_completing_twice_issues_no_query(
        self, connection: FixtureConnection, database_config: FixtureConfig, query_spy: FixtureSpy
    ):
        """
        Test that completing a complete parameter does nothing.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
            query_spy: A spy on statement executions.
        """
        with ParameterTable(connection, database_config) as table:
            sst = table.get_entry("SST")
            calls = query_spy.call_count
            table.complete_entry(sst)
            table.complete_entry(sst)
            assert query_spy.call_count == calls

    def test_completing_an_unknown_id(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that completing a parameter whose ID has no record raises `NoSuchRecordError`.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            with pytest.raises(NoSuchRecordError):
                table.complete_entry(table.get_incomplete_entry(42))

    @pytest.mark.parametrize("identifier", ["SST", 1.5, True])
    def test_incomplete_entry_needs_an_int(self, database_config: FixtureConfig, identifier):
        """
        Test that incomplete parameters are only requested by ID.

        Args:
            database_config: A configuration pointing at the seeded database.
            identifier: An invalid ID.
        """
        with ParameterTable(None, database_config) as table:
            with pytest.raises(TypeError):
                table.get_incomplete_entry(identifier)


class TestRollback:
    """Tests for the failure of the linear model or components resolution."""

    def test_failed_resolution_is_rolled_back(
        self, mocker: MockerFixture, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that a parameter whose linear model couldn't be resolved is reset
        and evicted, then resolved again by the next lookup.

        Args:
            mocker: PyTest mocker fixture.
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        mocker.patch.object(LinearModelTable, "get_terms", side_effect=[CatalogError("boom", "LinearModels"), None])
        with ParameterTable(connection, database_config) as table:
            with pytest.raises(CatalogError, match="boom"):
                table.get_entry("SST")
            assert 1 not in table._cache  # pylint: disable=protected-access
            assert "SST" not in table._cache  # pylint: disable=protected-access

            sst = table.get_entry("SST")
            assert sst.components == []
            assert sst.has_linear_model

    def test_failed_completion_resets_the_parameter(
        self, mocker: MockerFixture, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that an incomplete parameter whose completion failed is brought back
        to its incomplete state.

        Args:
            mocker: PyTest mocker fixture.
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        mocker.patch.object(LinearModelTable, "get_terms", side_effect=CatalogError("boom", "LinearModels"))
        with ParameterTable(connection, database_config) as table:
            sst = table.get_incomplete_entry(1)
            with pytest.raises(CatalogError):
                table.complete_entry(sst)
            assert not sst.is_complete
            assert not sst.has_components
            assert not sst.has_linear_model
            assert 1 not in table._cache  # pylint: disable=protected-access

    def test_failed_listing_leaves_no_unfinished_parameter(
        self, mocker: MockerFixture, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that when resolving one listed parameter fails, the parameters listed
        after it are not served from the cache with their linear model missing.

        Args:
            mocker: PyTest mocker fixture.
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        get_terms = LinearModelTable.get_terms
        calls = []

        def fail_first_call(linear_models, target):
            calls.append(target.id)
            if len(calls) == 1:
                raise CatalogError("boom", "LinearModels")
            return get_terms(linear_models, target)

        mocker.patch.object(LinearModelTable, "get_terms", autospec=True, side_effect=fail_first_call)
        with ParameterTable(connection, database_config) as table:
            with pytest.raises(CatalogError, match="boom"):
                table.get_all()
            assert "PP" not in table._cache  # pylint: disable=protected-access
            assert 4 not in table._cache  # pylint: disable=protected-access

            pp = table.get_entry("PP")
            assert pp.has_linear_model
            assert len(pp.linear_model) == 3
            assert table.get_entry("SST").has_linear_model

    def test_listing_keeps_parameters_finished_earlier(
        self, mocker: MockerFixture, connection: FixtureConnection, database_config: FixtureConfig
    ):
        """
        Test that a failed listing keeps the parameters it had already resolved,
        and evicts the ones it hadn't.

        Args:
            mocker: PyTest mocker fixture.
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        get_terms = LinearModelTable.get_terms

        def fail_on_sst(linear_models, target):
            if target.name == "SST":
                raise CatalogError("boom", "LinearModels")
            return get_terms(linear_models, target)

        mocker.patch.object(LinearModelTable, "get_terms", autospec=True, side_effect=fail_on_sst)
        with ParameterTable(connection, database_config) as table:
            with pytest.raises(CatalogError, match="boom"):
                table.get_all()
            chl = table._cache.get("CHL")  # pylint: disable=protected-access
            assert chl is not None
            assert chl.has_linear_model
            assert "SST" not in table._cache  # pylint: disable=protected-access


class TestDerivedParameters:
    """Tests for parameters computed from linear models or combinations."""

    def test_linear_model(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that the linear model of PP is resolved with its three terms, the
        term using the identity descriptor collapsing to its other descriptor.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            pp = table.get_entry("PP")
            assert pp.components == []
            assert pp.is_derived
            terms = pp.linear_model
            assert [[descriptor.name for descriptor in term.descriptors] for term in terms] == [
                ["SST_0"],
                ["CHL_0", "SLA_0"],
                ["CHL_0"],
            ]
            assert [term.coefficient for term in terms] == [0.5, 2.0, 1.5]
            assert all(term.target is pp for term in terms)

            chl_0 = terms[1].descriptors[0]
            assert isinstance(chl_0, LogScaledDescriptor)
            assert terms[2].descriptors[0] is chl_0
            assert isinstance(terms[1].descriptors[1], ScaledDescriptor)
            assert chl_0.parameter is table.get_entry("CHL")
            assert chl_0.parameter.is_complete

    def test_nested_linear_models(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that resolving HAB resolves the linear model of PP, whose descriptor
        HAB uses, and every parameter PP depends on.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            hab = table.get_entry("HAB")
            assert [[descriptor.name for descriptor in term.descriptors] for term in hab.linear_model] == [
                ["PP_0", "SST_-5"],
                ["PP_0"],
            ]
            pp = hab.linear_model[0].descriptors[0].parameter
            assert pp is table.get_entry("PP")
            assert pp.is_complete
            assert len(pp.linear_model) == 3
            for term in pp.linear_model:
                for descriptor in term.descriptors:
                    assert descriptor.parameter.is_complete
                    assert descriptor.parameter.has_linear_model

            sst_lagged = hab.linear_model[0].descriptors[1]
            assert sst_lagged.position.time_lag_ms == -5 * 24 * 60 * 60 * 1000
            assert sst_lagged.parameter is table.get_entry("SST")

    def test_combination(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a combination parameter gets its components and no linear model.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        with ParameterTable(connection, database_config) as table:
            eke = table.get_entry("EKE")
            assert eke.is_derived
            assert eke.linear_model is None
            assert [component.weight for component in eke.components] == [1.0, 0.5]
            assert [component.logarithm for component in eke.components] == [False, True]
            assert eke.components[0].position == RelativePosition.NULL
            assert eke.components[1].position.name == "-05"
            sla = table.get_entry("SLA")
            assert all(component.source is sla for component in eke.components)

    def test_linear_model_resolution_queries(
        self, connection: FixtureConnection, database_config: FixtureConfig, query_spy: FixtureSpy
    ):
        """
        Test that each parameter of PP's model is fetched once, by ID.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
            query_spy: A spy on statement executions.
        """
        with ParameterTable(connection, database_config) as table:
            table.get_entry("PP")
        assert queries_on(query_spy, "Parameters") == [("PP",), (1,), (2,), (3,)]
        assert queries_on(query_spy, "LinearModels") == [(4,), (1,), (2,), (3,)]


class TestChildTables:
    """Tests for the tables a parameter table creates."""

    def test_owned_descriptor_table(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a parameter table builds its own descriptor table, wired back to
        itself, and closes every child table.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        table = ParameterTable(connection, database_config)
        table.get_entry("EKE")
        descriptors = table.get_descriptor_table()
        linear_models = table.get_linear_model_table()
        combinations = table.get_combination_table()
        assert descriptors.get_parameter_table() is table
        assert linear_models.descriptors is descriptors
        assert combinations.parameters is table

        table.close()
        assert descriptors.closed
        assert linear_models.closed
        assert combinations.closed
        with pytest.raises(CatalogError):
            table.get_incomplete_entry(1)

    def test_supplied_descriptor_table(self, connection: FixtureConnection, database_config: FixtureConfig):
        """
        Test that a descriptor table given at construction is used and left open.

        Args:
            connection: An open connection to the seeded database.
            database_config: A configuration pointing at the seeded database.
        """
        descriptors = DescriptorTable(connection, database_config)
        table = ParameterTable(connection, database_config, descriptors=descriptors)
        assert table.get_descriptor_table() is descriptors
        table.close()
        assert not descriptors.closed
        descriptors.close()

    def test_parameter_equality(self):
        """
        Test that parameters compare by their row fields, not by derivation.
        """
        assert Parameter(1, "SST", 10, 11) == Parameter(1, "SST", 10, 11)
        assert Parameter(1, "SST") != Parameter(1)
