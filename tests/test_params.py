"""Tests for nestling.params — body parsing, bracket keys, and binding."""

import pytest

from nestling.config import ValidatorConfig
from nestling.errors import FormBindingError
from nestling.form import CollectionItem, Field, Form, FormCollection, FormNested, FormType
from nestling.params import FormData, bind, nest_params, parse_form_data
from nestling.validation import RulesValidator, format_error, required
from nestling.validator import validate

# ---------------------------------------------------------------------------
# FormData unit tests
# ---------------------------------------------------------------------------


class TestFormData:
    def test_getitem_returns_first(self) -> None:
        form = FormData({"color": ["red", "blue"]})
        assert form["color"] == "red"

    def test_getitem_missing_raises(self) -> None:
        form = FormData({})
        with pytest.raises(KeyError):
            form["missing"]

    def test_get_with_default(self) -> None:
        form = FormData({})
        assert form.get("missing") is None
        assert form.get("missing", "fallback") == "fallback"

    def test_get_list(self) -> None:
        form = FormData({"tags": ["python", "web"]})
        assert form.get_list("tags") == ["python", "web"]
        assert form.get_list("missing") == []

    def test_len_and_iter(self) -> None:
        form = FormData({"a": ["1"], "b": ["2"]})
        assert len(form) == 2
        assert set(form) == {"a", "b"}

    def test_repr(self) -> None:
        assert "alice" in repr(FormData({"name": ["alice"]}))


# ---------------------------------------------------------------------------
# parse_form_data
# ---------------------------------------------------------------------------


class TestParseUrlEncoded:
    @pytest.mark.anyio
    async def test_basic(self) -> None:
        form = await parse_form_data(b"name=alice&age=30", "application/x-www-form-urlencoded")
        assert form["name"] == "alice"
        assert form["age"] == "30"

    @pytest.mark.anyio
    async def test_multiple_values(self) -> None:
        form = await parse_form_data(b"tag=a&tag=b&tag=c", "application/x-www-form-urlencoded")
        assert form.get_list("tag") == ["a", "b", "c"]

    @pytest.mark.anyio
    async def test_empty_body(self) -> None:
        form = await parse_form_data(b"", "application/x-www-form-urlencoded")
        assert len(form) == 0

    @pytest.mark.anyio
    async def test_brackets_are_decoded(self) -> None:
        form = await parse_form_data(
            b"address%5Bcity%5D=Paris&q=hello+world", "application/x-www-form-urlencoded; charset=utf-8"
        )
        assert form["address[city]"] == "Paris"
        assert form["q"] == "hello world"


class TestParseMultipart:
    @pytest.mark.anyio
    async def test_text_parts_kept_file_parts_skipped(self) -> None:
        pytest.importorskip("python_multipart")
        body = (
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="name"\r\n'
            b"\r\n"
            b"alice\r\n"
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="avatar"; filename="a.txt"\r\n'
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"hello\r\n"
            b"--XyZ--\r\n"
        )

        form = await parse_form_data(body, "multipart/form-data; boundary=XyZ")

        assert form["name"] == "alice"
        assert "avatar" not in form
        assert len(form) == 1

    @pytest.mark.anyio
    async def test_repeated_and_bracketed_parts(self) -> None:
        pytest.importorskip("python_multipart")
        body = (
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="tag[]"\r\n'
            b"\r\n"
            b"a\r\n"
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="tag[]"\r\n'
            b"\r\n"
            b"b\r\n"
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="address[city]"\r\n'
            b"\r\n"
            b"Paris\r\n"
            b"--XyZ--\r\n"
        )

        form = await parse_form_data(body, "multipart/form-data; boundary=XyZ")

        assert form.get_list("tag[]") == ["a", "b"]
        assert nest_params(form) == {"tag": ["a", "b"], "address": {"city": "Paris"}}

    @pytest.mark.anyio
    async def test_missing_boundary(self) -> None:
        pytest.importorskip("python_multipart")
        with pytest.raises(ValueError, match="boundary"):
            await parse_form_data(b"", "multipart/form-data")


class TestParseUnsupported:
    @pytest.mark.anyio
    async def test_unsupported_content_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported form content type"):
            await parse_form_data(b"data", "application/json")


# ---------------------------------------------------------------------------
# nest_params
# ---------------------------------------------------------------------------


class TestNestParams:
    def test_flat_keys(self) -> None:
        assert nest_params({"name": "alice"}) == {"name": "alice"}

    def test_nested_keys(self) -> None:
        flat = {"address[city]": "Paris", "address[geo][lat]": "48.8"}
        assert nest_params(flat) == {"address": {"city": "Paris", "geo": {"lat": "48.8"}}}

    def test_indexed_keys_stay_strings(self) -> None:
        flat = {"phones[0][number]": "1", "phones[1][number]": "2", "phones[1][_delete]": "true"}
        assert nest_params(flat) == {
            "phones": {"0": {"number": "1"}, "1": {"number": "2", "_delete": "true"}},
        }

    def test_list_suffix_collects_form_data_values(self) -> None:
        flat = FormData({"tags[]": ["a", "b"], "user[roles][]": ["admin"]})
        assert nest_params(flat) == {"tags": ["a", "b"], "user": {"roles": ["admin"]}}

    def test_list_suffix_on_plain_mapping(self) -> None:
        assert nest_params({"tags[]": "a"}) == {"tags": ["a"]}

    def test_unbalanced_brackets_kept_verbatim(self) -> None:
        assert nest_params({"odd[key": "1"}) == {"odd[key": "1"}

    def test_value_then_group_conflict(self) -> None:
        with pytest.raises(FormBindingError) as exc_info:
            nest_params({"a": "1", "a[b]": "2"})
        assert "a[b]" in exc_info.value.errors

    def test_group_then_value_conflict(self) -> None:
        with pytest.raises(FormBindingError) as exc_info:
            nest_params({"a[b]": "2", "a": "1"})
        assert "a" in exc_info.value.errors


# ---------------------------------------------------------------------------
# bind
# ---------------------------------------------------------------------------

USER = FormType("user", rules={"name": [required]})
ADDRESS = FormType("address", rules={"city": [required]})
PHONE = FormType("phone", rules={"number": [required]})


def _user(phone_count: int = 2) -> Form:
    return Form(
        USER,
        items=(
            Field("name"),
            FormNested("address", Form(ADDRESS, items=(Field("city"),))),
            FormCollection(
                "phones",
                forms=tuple(CollectionItem(Form(PHONE, items=(Field("number"),))) for _ in range(phone_count)),
            ),
        ),
    )


class TestBind:
    def test_binds_field_values(self) -> None:
        form = bind(_user(), {"name": "alice"})
        assert form.value("name") == "alice"

    def test_scalars_land_in_data(self) -> None:
        form = bind(_user(), {"name": "alice", "token": "abc"})
        assert form.data == {"name": "alice", "token": "abc"}

    def test_binds_nested(self) -> None:
        form = bind(_user(), {"address": {"city": "Paris"}})
        assert form.get_nested()[0].form.value("city") == "Paris"

    def test_binds_collection_by_index(self) -> None:
        form = bind(_user(), {"phones": {"1": {"number": "555"}}})
        first, second = form.get_collections()[0].forms
        assert first.form.value("number") == ""
        assert second.form.value("number") == "555"

    def test_delete_marker_reaches_collection(self) -> None:
        form = bind(_user(), {"phones": {"0": {"_delete": "true"}}})
        collection = form.get_collections()[0]
        assert collection.to_be_removed(collection.forms[0])
        assert not collection.to_be_removed(collection.forms[1])

    def test_list_value_binds_first(self) -> None:
        form = bind(_user(), {"name": ["alice", "bob"]})
        assert form.value("name") == "alice"

    def test_unknown_params_ignored(self) -> None:
        original = _user(phone_count=1)
        form = bind(original, {"phones": {"5": {"number": "x"}}, "ghost": {"a": "b"}})
        assert form.get_collections()[0].forms == original.get_collections()[0].forms
        assert len(form.items) == len(original.items)

    def test_missing_params_leave_tree_untouched(self) -> None:
        original = _user()
        assert bind(original, {}) == original

    def test_group_for_field_is_error(self) -> None:
        with pytest.raises(FormBindingError) as exc_info:
            bind(_user(), {"name": {"first": "a"}})
        assert "name" in exc_info.value.errors

    def test_value_for_nested_is_error(self) -> None:
        with pytest.raises(FormBindingError) as exc_info:
            bind(_user(), {"address": "Paris"})
        assert "address" in exc_info.value.errors

    def test_error_paths_use_brackets(self) -> None:
        with pytest.raises(FormBindingError) as exc_info:
            bind(_user(), {"phones": {"0": "oops"}, "address": {"city": {"x": "y"}}})
        assert set(exc_info.value.errors) == {"phones[0]", "address[city]"}


class TestSubmissionToValidation:
    @pytest.mark.anyio
    async def test_end_to_end(self) -> None:
        body = (
            b"name=alice&address%5Bcity%5D=Paris"
            b"&phones%5B0%5D%5Bnumber%5D=555"
            b"&phones%5B1%5D%5Bnumber%5D="
            b"&phones%5B1%5D%5B_delete%5D=true"
        )
        flat = await parse_form_data(body, "application/x-www-form-urlencoded")
        config = ValidatorConfig(validator=RulesValidator(), translate_error=format_error)

        form = validate(bind(_user(), nest_params(flat)), config)

        first, second = form.get_collections()[0].forms
        assert form.valid is True
        assert first.form.valid is True
        assert second.form.valid is True
        assert second.form.errors == {}

    @pytest.mark.anyio
    async def test_end_to_end_invalid(self) -> None:
        flat = await parse_form_data(b"name=&phones%5B0%5D%5Bnumber%5D=", "application/x-www-form-urlencoded")
        config = ValidatorConfig(validator=RulesValidator(), translate_error=format_error)

        form = validate(bind(_user(phone_count=1), nest_params(flat)), config)

        assert form.valid is False
        assert form.errors == {"name": ["This field is required"]}
        assert form.get_nested()[0].form.errors == {"city": ["This field is required"]}
        assert form.get_collections()[0].forms[0].form.errors == {"number": ["This field is required"]}
