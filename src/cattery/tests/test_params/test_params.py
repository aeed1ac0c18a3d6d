import pytest

from cattery.exceptions.base import InvalidFieldError, ParameterMissingError, ValidationFailedError
from cattery.schemas.cat import CatCreateParams, CatUpdateParams
from cattery.utils.params import method_override, parse_nested_params, require_param


class TestParseNestedParams:
    """
    Bracketed form keys become nested dicts, the same shape JSON clients send.
    """

    def test_nested_resource(self):
        params = parse_nested_params([("cat[name]", "Tom"), ("cat[color]", "gray"), ("_method", "patch")])
        assert params == {"cat": {"name": "Tom", "color": "gray"}, "_method": "patch"}

    def test_deeper_nesting(self):
        assert parse_nested_params([("a[b][c]", "1")]) == {"a": {"b": {"c": "1"}}}

    def test_last_value_wins(self):
        params = parse_nested_params([("cat[name]", "Tom"), ("cat[name]", "Felix")])
        assert params == {"cat": {"name": "Felix"}}

    def test_nested_form_wins_over_scalar(self):
        """
        Behavior:
          - `cat=x` followed or preceded by `cat[name]=Tom` keeps the nested mapping.

        Importance:
          - A stray scalar must not hide the resource params from require_param().
        """
        assert parse_nested_params([("cat", "x"), ("cat[name]", "Tom")]) == {"cat": {"name": "Tom"}}
        assert parse_nested_params([("cat[name]", "Tom"), ("cat", "x")]) == {"cat": {"name": "Tom"}}

    def test_empty_brackets_are_dropped(self):
        assert parse_nested_params([("tags[]", "a")]) == {"tags": "a"}

    def test_no_pairs(self):
        assert parse_nested_params([]) == {}


class TestRequireParam:
    def test_returns_nested_mapping(self):
        assert require_param({"cat": {"name": "Tom"}}, "cat") == {"name": "Tom"}

    @pytest.mark.parametrize("params", [{}, {"cat": {}}, {"cat": ""}, {"cat": "Tom"}, {"dog": {"name": "Rex"}}])
    def test_missing_or_empty_raises(self, params):
        """
        Behavior:
          - Absent, empty, or non-mapping values raise ParameterMissingError (400).
        """
        with pytest.raises(ParameterMissingError) as exc_info:
            require_param(params, "cat")

        assert exc_info.value.param == "cat"
        assert exc_info.value.http_status() == 400
        assert exc_info.value.message == "param is missing or the value is empty: cat"


class TestMethodOverride:
    @pytest.mark.parametrize("value, expected", [("patch", "PATCH"), (" put ", "PUT"), ("DELETE", "DELETE")])
    def test_uppercases(self, value, expected):
        assert method_override({"_method": value}) == expected

    @pytest.mark.parametrize("params", [{}, {"_method": ""}, {"_method": "  "}, {"_method": ["patch"]}])
    def test_absent(self, params):
        assert method_override(params) is None


class TestCatCreateParams:
    """
    The create allow-list is exactly {name, color}.
    """

    def test_permitted_fields(self):
        fields = CatCreateParams.from_params({"name": " Tom ", "color": "gray"}).to_fields()
        assert fields == {"name": "Tom", "color": "gray"}

    def test_unpermitted_keys_dropped(self):
        """
        Behavior:
          - Default mode drops keys outside the allow-list.

        Importance:
          - A client can never set id or timestamps through the form.
        """
        fields = CatCreateParams.from_params(
            {"name": "Tom", "color": "gray", "id": "99", "owner": "Jon"}).to_fields()
        assert fields == {"name": "Tom", "color": "gray"}

    def test_unpermitted_keys_raise(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            CatCreateParams.from_params({"name": "Tom", "owner": "Jon", "id": "9"}, on_unpermitted="raise")

        assert exc_info.value.fields == ["id", "owner"]
        assert exc_info.value.http_status() == 422

    def test_only_sent_fields_are_returned(self):
        assert CatCreateParams.from_params({"name": "Tom"}).to_fields() == {"name": "Tom"}

    def test_blank_values_become_none(self):
        fields = CatCreateParams.from_params({"name": "  ", "color": ""}).to_fields()
        assert fields == {"name": None, "color": None}

    def test_non_text_value_fails_validation(self):
        """
        Behavior:
          - JSON clients may send non-strings; they fail as a field error, not a 500.
        """
        with pytest.raises(ValidationFailedError) as exc_info:
            CatCreateParams.from_params({"name": 5, "color": "gray"})

        assert exc_info.value.errors == {"name": "must be text"}


class TestCatUpdateParams:
    """
    The update allow-list is exactly {color}; a cat's name never changes.
    """

    def test_name_is_dropped(self):
        fields = CatUpdateParams.from_params({"name": "Bob", "color": "white"}).to_fields()
        assert fields == {"color": "white"}

    def test_name_rejected_in_raise_mode(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            CatUpdateParams.from_params({"name": "Bob", "color": "white"}, on_unpermitted="raise")
        assert exc_info.value.fields == ["name"]

    def test_empty_when_nothing_permitted(self):
        assert CatUpdateParams.from_params({"name": "Bob"}).to_fields() == {}
