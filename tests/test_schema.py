"""Tests for custom query shape inference"""
import pytest

from metrics.errors import ConfigurationError
from metrics.models import MetricType
from metrics.schema import column_name, extract_select_list, infer_query_shape, split_columns


class TestInferQueryShape:
    """Test value/label column inference"""

    def test_value_first_labels_in_order(self):
        shape = infer_query_shape("select cnt, region, host from stats")

        assert shape.value_column == "cnt"
        assert shape.label_names == ("region", "host")
        assert shape.column_count == 3

    def test_case_insensitive_keywords(self):
        shape = infer_query_shape("SELECT cnt, Region FROM stats")

        assert shape.label_names == ("region",)

    def test_default_kind_is_counter(self):
        assert infer_query_shape("select cnt from stats").metric_type == MetricType.COUNTER

    def test_gauge_marker(self):
        shape = infer_query_shape("select count(*) as gauge_value, state from pg_stat_activity group by state")

        assert shape.metric_type == MetricType.GAUGE
        assert shape.value_column == "gauge_value"
        assert shape.label_names == ("state",)

    def test_gauge_marker_is_case_sensitive(self):
        shape = infer_query_shape("SELECT count(*) AS GAUGE_VALUE, state FROM pg_stat_activity GROUP BY state")

        assert shape.metric_type == MetricType.COUNTER
        assert shape.value_column == "gauge_value"

    def test_single_value_column_has_no_labels(self):
        shape = infer_query_shape("select count(*) from pg_stat_activity")

        assert shape.label_names == ()
        assert shape.value_column == "count(*)"

    def test_aliases_and_qualified_names(self):
        shape = infer_query_shape(
            "select sum(s.n_live_tup) as rows, s.schemaname, coalesce(t.owner, 'none') as owner "
            "from pg_stat_user_tables s join meta t on t.relid = s.relid group by 2, 3"
        )

        assert shape.value_column == "rows"
        assert shape.label_names == ("schemaname", "owner")

    def test_subquery_in_select_list(self):
        shape = infer_query_shape(
            "select (select count(*) from pg_locks) as locks, datname from pg_database"
        )

        assert shape.value_column == "locks"
        assert shape.label_names == ("datname",)

    def test_missing_from_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            infer_query_shape("select 1")

    def test_not_a_select_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            infer_query_shape("vacuum analyze")

    def test_empty_column_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            infer_query_shape("select cnt,, host from stats")

    def test_unnamed_label_expression_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            infer_query_shape("select cnt, lower(host) from stats")

    def test_duplicate_label_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            infer_query_shape("select cnt, host, host from stats")


class TestSelectListParsing:
    """Test the lower level parsing helpers"""

    def test_extract_select_list(self):
        assert extract_select_list("select a, b from t").strip() == "a, b"

    def test_from_inside_identifier_is_ignored(self):
        assert extract_select_list("select from_date, b from t").strip() == "from_date, b"

    def test_split_respects_parentheses_and_quotes(self):
        assert split_columns("coalesce(a, b), 'x,y' as c, d") == ["coalesce(a, b)", "'x,y' as c", "d"]

    def test_column_name(self):
        assert column_name("t.host") == "host"
        assert column_name("count(*) AS Total") == "total"
        assert column_name('"Region"') == "Region"
        assert column_name("count(*)") is None
