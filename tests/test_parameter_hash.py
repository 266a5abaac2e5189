"""
Tests for parameter normalization, hashing and similarity
"""
import pytest

from toolhub.services import parameter_hash as ph


class TestNormalizeParameters:
    """Test normalization rules"""

    def test_strings_numbers_and_empties(self):
        normalized = ph.normalize_parameters(
            {"name": "  Acme Corp ", "price": 10.456, "count": 3.0, "note": "   ", "missing": None, "flag": False}
        )
        assert normalized == {"name": "acme corp", "price": 10.46, "count": 3, "flag": False}

    def test_lists_are_sorted_and_filtered(self):
        normalized = ph.normalize_parameters({"tags": ["B", "", "a", None], "empty": [], "nested": {"x": ""}})
        assert normalized == {"tags": ["a", "b"]}

    def test_nested_dicts(self):
        assert ph.normalize_parameters({"form": {"Goal": " Grow ", "skip": None}}) == {"form": {"Goal": "grow"}}

    def test_non_dict_is_empty(self):
        assert ph.normalize_parameters(["a"]) == {}


class TestHashing:
    """Test hash stability"""

    def test_equivalent_inputs_share_hash(self):
        first = ph.generate_parameter_hash({"a": "X ", "b": [2, 1]}, "swot-analysis", "u1")
        second = ph.generate_parameter_hash({"b": [1, 2], "a": "x"}, "swot-analysis", "u1")
        assert first == second
        assert len(first) == 64

    def test_tool_and_user_change_hash(self):
        params = {"a": 1}
        base = ph.generate_parameter_hash(params, "swot-analysis", "u1")
        assert base != ph.generate_parameter_hash(params, "finance-advisor", "u1")
        assert base != ph.generate_parameter_hash(params, "swot-analysis", "u2")
        assert ph.generate_parameter_hash(params, "swot-analysis") == ph.generate_parameter_hash(
            params, "swot-analysis", None
        )


class TestSimilarity:
    """Test similarity scoring and comparisons"""

    def test_similarity_ratio(self):
        assert ph.calculate_similarity({"a": 1, "b": 2}, {"a": 1, "b": 3}) == 0.5
        assert ph.calculate_similarity({}, {}) == 1.0
        assert ph.calculate_similarity({"a": 1}, {}) == 0.0

    def test_differences(self):
        differences = ph.find_parameter_differences({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert differences == ["Extra parameter: a", "Different value for: b", "Missing parameter: c"]

    def test_compare_parameters(self):
        same = ph.compare_parameters({"a": "X"}, {"a": "x"}, "t", "t", "u", "u")
        assert same == {"isDuplicate": True, "similarity": 1.0, "differences": []}
        different = ph.compare_parameters({"a": 1, "b": 2}, {"a": 1, "b": 3}, "t", "t", "u", "u")
        assert different["isDuplicate"] is False
        assert different["differences"] == ["Different value for: b"]

    def test_is_similar_and_extract(self):
        assert ph.is_similar_parameters({"a": 1}, {"a": 1})
        assert not ph.is_similar_parameters({"a": 1, "b": 1}, {"a": 1, "b": 2})
        assert ph.extract_key_parameters({"a": 1, "b": 2}, ["a", "z"]) == {"a": 1}


class TestValidationAndSummary:
    """Test validation and the human readable summary"""

    def test_validate_parameters(self):
        assert ph.validate_parameters({"a": 1}) == {"isValid": True, "errors": []}
        assert ph.validate_parameters("nope")["isValid"] is False
        assert ph.validate_parameters({"a": object()})["errors"] == ["Parameters must be JSON serializable"]
        assert ph.validate_parameters({"a": "x" * 1_000_001})["isValid"] is False

    @pytest.mark.parametrize(
        "params,expected",
        [
            ({}, "No parameters"),
            ({"a": "short"}, 'a: "short"'),
            ({"a": "a much longer string value here"}, "a: a much longer string..."),
            ({"a": 1, "b": 2, "c": 3, "d": 4, "e": 5}, "a: 1, b: 2, c: 3 (+2 more)"),
        ],
    )
    def test_summary(self, params, expected):
        assert ph.get_parameter_summary(params) == expected
