"""Tests for response flattening helpers."""

from sources.lseg.flattener import (
    MAX_VALUE_LENGTH,
    flatten_with_stats,
    group_by_root,
    smart_flatten,
)


class TestSmartFlatten:
    def test_nested_dict_paths(self):
        items = smart_flatten({"fund": {"name": "Alpha", "aum": 12.5, "active": True}})
        assert items == [
            {"path": "fund.name", "value": "Alpha", "type": "string"},
            {"path": "fund.aum", "value": "12.5", "type": "number"},
            {"path": "fund.active", "value": "true", "type": "boolean"},
        ]

    def test_list_keeps_first_element_and_length(self):
        items = smart_flatten({"prices": [{"close": 1}, {"close": 2}, {"close": 3}]})
        assert items == [
            {"path": "prices[0].close", "value": "1", "type": "number"},
            {"path": "prices._arrayLength", "value": "3", "type": "meta"},
        ]

    def test_empty_list_and_null(self):
        items = smart_flatten({"tags": [], "note": None})
        assert items == [
            {"path": "tags", "value": "[]", "type": "emptyArray"},
            {"path": "note", "value": "null", "type": "null"},
        ]

    def test_scalar_root(self):
        assert smart_flatten("x") == [{"path": "root", "value": "x", "type": "string"}]

    def test_long_values_truncated(self):
        items = smart_flatten({"text": "a" * 250})
        assert items[0]["value"] == "a" * MAX_VALUE_LENGTH + "..."

    def test_integral_float_has_no_decimal(self):
        items = smart_flatten({"nav": 1.0, "ret": 1.5})
        assert [i["value"] for i in items] == ["1", "1.5"]

    def test_custom_separator(self):
        assert smart_flatten({"a": {"b": 1}}, sep="/")[0]["path"] == "a/b"


class TestStats:
    def test_stats_fields(self):
        data = {"headers": [{"name": "x"} for _ in range(50)]}
        result = flatten_with_stats(data)
        stats = result["stats"]
        assert stats["flattenedCount"] == len(result["items"]) == 2
        assert stats["originalSize"] > 0
        assert stats["compressionRatio"].endswith("%")
        assert float(stats["compressionRatio"][:-1]) > 0


    def test_non_ascii_sized_by_characters(self):
        result = flatten_with_stats({"name": "Fonds Européen"})
        assert result["stats"]["originalSize"] == len('{"name":"Fonds Européen"}')


class TestGroupByRoot:
    def test_groups_on_first_segment(self):
        items = smart_flatten({"data": [[1, 2]], "headers": [{"name": "x"}], "meta": {"n": 1}})
        groups = group_by_root(items)
        assert set(groups) == {"data", "headers", "meta"}
        assert all(i["path"].startswith("data") for i in groups["data"])
