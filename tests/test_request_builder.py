import pytest

from igservice.adapters.request_builder import (
    FILTER_AND,
    FILTER_EQUALS,
    FILTER_EXACT,
    FILTER_OR,
    RequestBuilder,
    build_eid_fragment,
    build_filter_string,
    serialize_data,
)
from igservice.core.exceptions import ValidationException
from igservice.domain.models import FormData, Operation, coerce_filter

from conftest import BASE_URL, WEBSERVICE

FORM = {"Content-Type": "application/x-www-form-urlencoded"}


@pytest.fixture
def builder() -> RequestBuilder:
    return RequestBuilder(BASE_URL + "/")


def test_delimiter_constants_match_backend():
    assert FILTER_EQUALS == "|^;.C.|^;"
    assert FILTER_EXACT == "|^;.IET.|^;"
    assert FILTER_AND == "|$;"
    assert FILTER_OR == "|#;"


def test_view_uses_default_pagination(builder):
    request = builder.view("Orders")

    assert request.operation == Operation.VIEW
    assert request.method == "POST"
    assert request.url == (
        WEBSERVICE
        + "&action=display&pagename=list.jsp&func=display&tran=Orders&frow=1&rpp=25&silentfunc=true"
    )
    assert request.headers == FORM
    assert request.body == ""
    assert not request.is_multipart


def test_view_with_pagination_and_filters(builder):
    request = builder.view(
        "Orders",
        filter=coerce_filter([["Age", "30"], ["Name", "Bob", "exact"]]),
        start_row=51,
        rows_per_page=50,
    )

    assert request.url.endswith("&tran=Orders&frow=51&rpp=50&silentfunc=true")
    assert request.body == "&rtfilter=Age|^;.C.|^;30|$;Name|^;.IET.|^;Bob"


def test_instance_defaults_apply_when_call_leaves_pagination_unset():
    request = RequestBuilder(BASE_URL, rows_per_page=10, start_row=3).view("Orders")

    assert "&frow=3&rpp=10&" in request.url


def test_create_serializes_data_without_escaping(builder):
    request = builder.create("Orders", {"Name": "A B&C", "Age": 30})

    assert request.url == (
        WEBSERVICE + "&action=display&pagename=edit.jsp&func=editadd&tran=Orders&silentfunc=true"
    )
    assert request.body == "&Name=A B&C&Age=30"


def test_edit_with_string_eid(builder):
    request = builder.edit("Txn", {"Name": "X"}, "ROW5")

    assert request.url == (
        WEBSERVICE + "&action=display&pagename=edit.jsp&func=edit&tran=Txn&silentfunc=true"
    )
    assert request.body == "&Name=X&eid=ROW5"
    assert FILTER_EXACT not in request.body


def test_edit_with_field_value_pair(builder):
    request = builder.edit("Txn", {"Name": "X"}, ["Id", "5"])

    assert request.body == "&Name=X&eid=Id|^;.IET.|^;5"


def test_edit_all_differs_only_in_server_function(builder):
    request = builder.edit_all("Txn", {"Name": "X"}, ["Id", "5"])

    assert request.url == (
        WEBSERVICE + "&action=display&pagename=edit.jsp&func=editall&tran=Txn&silentfunc=true"
    )
    assert request.body == "&Name=X&eid=Id|^;.IET.|^;5"


def test_delete_puts_filter_under_eid(builder):
    request = builder.delete("Orders", coerce_filter([["Id", "5", "exact"], ["Kind", "old"]]))

    assert request.url == (
        WEBSERVICE + "&action=display&pagename=list.jsp&func=delete&tran=Orders&silentfunc=true"
    )
    assert request.body == "&eid=Id|^;.IET.|^;5|$;Kind|^;.C.|^;old"


def test_delete_without_filter_sends_empty_body(builder):
    assert builder.delete("Orders", []).body == ""


def test_app_request(builder):
    request = builder.app("appRecalc", {"k": "v"}, start_row=11, rows_per_page=10)

    assert request.url == WEBSERVICE + "&func=appRecalc&frow=11&rpp=10&silentfunc=true"
    assert request.body == "&k=v"


def test_row_count_suffix_has_no_leading_ampersand(builder):
    request = builder.row_count("Orders")

    assert request.url == WEBSERVICE + "func=displayrowct&tran=Orders&silentfunc=true"
    assert request.body == ""


def test_login_has_no_transaction_or_filter(builder):
    request = builder.login()

    assert request.url == WEBSERVICE + "signin"
    assert request.body == ""


def test_login_may_carry_credentials(builder):
    assert builder.login({"user": "jo", "pwd": "pw"}).body == "&user=jo&pwd=pw"


def test_custom_bypasses_webservice_prefix(builder):
    request = builder.custom("reports/run.jsp", {"a": "1"}, filter=coerce_filter([["Dept", "IT"]]))

    assert request.url == BASE_URL + "/apps/reports/run.jsp"
    assert request.body == "&a=1&rtfilter=Dept|^;.C.|^;IT"


def test_attach_is_multipart_with_fragments_in_url(builder):
    form = FormData().add_field("note", "march").add_file("upload", b"a,b\n", "report.csv", "text/csv")

    request = builder.attach("appUpload", form, filter=coerce_filter([["Doc", "7"]]))

    assert request.is_multipart
    assert request.url == WEBSERVICE + "&func=appUpload&silentfunc=true&rtfilter=Doc|^;.C.|^;7"
    assert request.form_fields == {"note": "march"}
    assert request.files == {"upload": ("report.csv", b"a,b\n", "text/csv")}
    assert request.body == ""
    assert "Content-Type" not in request.headers


@pytest.mark.parametrize("name", ["", None])
def test_empty_names_are_rejected(builder, name):
    with pytest.raises(ValidationException) as exc_info:
        builder.view(name)

    assert exc_info.value.field == "transaction"


def test_contains_is_default_match():
    assert build_filter_string(coerce_filter([["Age", "30"]]), "&rtfilter=") == "&rtfilter=Age|^;.C.|^;30"


def test_only_literal_exact_tag_selects_exact_match():
    assert build_filter_string(coerce_filter([["Age", "30", "exact"]]), "&rtfilter=") == "&rtfilter=Age|^;.IET.|^;30"
    assert build_filter_string(coerce_filter([["Age", "30", "EXACT"]]), "&rtfilter=") == "&rtfilter=Age|^;.C.|^;30"
    assert build_filter_string(coerce_filter([["Age", "30", True]]), "&rtfilter=") == "&rtfilter=Age|^;.C.|^;30"


def test_empty_filter_contributes_nothing():
    assert build_filter_string([], "&rtfilter=") == ""
    assert build_filter_string(coerce_filter(None), "&rtfilter=") == ""


def test_or_delimiter_is_never_assembled():
    clauses = coerce_filter([["A", "1"], ["B", "2"], ["C", "3", "exact"]])

    assert FILTER_OR not in build_filter_string(clauses, "&rtfilter=")


def test_eid_fragment_forms():
    assert build_eid_fragment("ROW5") == "&eid=ROW5"
    assert build_eid_fragment("") == ""
    assert build_eid_fragment(("Id", 5)) == "&eid=Id|^;.IET.|^;5"
    assert build_eid_fragment(None) == ""
    assert build_eid_fragment([]) == ""


def test_edit_with_empty_string_eid_sends_no_identifier(builder):
    assert builder.edit("Txn", {"Name": "X"}, "").body == "&Name=X"
    assert builder.edit_all("Txn", {"Name": "X"}, "").body == "&Name=X"


def test_eid_fragment_rejects_single_element_pair():
    with pytest.raises(ValidationException):
        build_eid_fragment(["Id"])


def test_serialize_data_renders_booleans_and_none_like_browser_clients():
    assert serialize_data({"active": True, "archived": False, "note": None, "qty": 3}) == (
        "&active=true&archived=false&note=null&qty=3"
    )


def test_filter_and_eid_values_use_browser_rendering(builder):
    assert builder.view("Orders", filter=coerce_filter([["Open", True]])).body == "&rtfilter=Open|^;.C.|^;true"
    assert builder.edit("Txn", {}, ["Flag", False]).body == "&eid=Flag|^;.IET.|^;false"


def test_serialize_data_keeps_mapping_order():
    assert serialize_data({"b": "2", "a": "1"}) == "&b=2&a=1"
    assert serialize_data(None) == ""
    assert serialize_data({}) == ""
