"""
Translation of logical operations into web service requests.

Everything here is pure: functions take structured inputs and return a
:class:`RequestDescriptor`, so request shapes can be checked without any
network I/O. The byte layout of URLs and bodies must match what the
backend's ``webservice.jsp`` expects; values are NOT escaped here.
"""

from typing import Any, List, Mapping, Optional, Sequence

from igservice.core.exceptions import ValidationException
from igservice.domain.models import (
    EidInput,
    FilterClause,
    FormData,
    MatchMode,
    Operation,
    RequestDescriptor,
    to_wire,
)

# Filter delimiters, matched byte-for-byte by the backend
FILTER_EQUALS = "|^;.C.|^;"
FILTER_EXACT = "|^;.IET.|^;"
FILTER_AND = "|$;"
FILTER_OR = "|#;"

CONNECT_SUBD = "/apps/"
CONNECT_WEBSVC = "webservice.jsp?"
CONNECT_NOSESSIONFN = CONNECT_SUBD + CONNECT_WEBSVC + "wsrvformat=json&wsrvfunc="

SILENT_FLAG = "&silentfunc=true"
EID_PARAM = "&eid="
FILTER_PARAM = "&rtfilter="

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}

DEFAULT_ROWS_PER_PAGE = 25
DEFAULT_START_ROW = 1


def build_filter_string(clauses: List[FilterClause], param_name: str) -> str:
    """
    Join filter clauses under ``param_name``.

    An empty clause list yields an empty string, never a bare parameter.
    """
    if not clauses:
        return ""
    parts = []
    for clause in clauses:
        delimiter = FILTER_EXACT if clause.match == MatchMode.EXACT else FILTER_EQUALS
        parts.append(clause.field_name + delimiter + clause.value)
    return param_name + FILTER_AND.join(parts)


def build_eid_fragment(eid: EidInput) -> str:
    """Identifier fragment for edit/editAll: a raw id or a [field, value] pair."""
    if not eid:
        return ""
    if isinstance(eid, str):
        return EID_PARAM + eid
    if not isinstance(eid, Sequence) or len(eid) < 2:
        raise ValidationException("eid must be a record id or a [field, value] pair", field="eid")
    return EID_PARAM + to_wire(eid[0]) + FILTER_EXACT + to_wire(eid[1])


def serialize_data(data: Optional[Mapping[str, Any]]) -> str:
    """
    Render a payload as ``&key=value`` fragments, in mapping order.

    Booleans and None are sent as ``true``/``false``/``null``.
    """
    if not data:
        return ""
    return "".join(f"&{key}={to_wire(value)}" for key, value in data.items())


def build_url_suffix(operation: Operation, name: str, start_row: int, rows_per_page: int) -> str:
    """Operation specific query suffix appended after ``wsrvfunc=``."""
    if operation == Operation.LOGIN:
        return "signin"
    if operation == Operation.VIEW:
        return (f"&action=display&pagename=list.jsp&func=display&tran={name}"
                f"&frow={start_row}&rpp={rows_per_page}{SILENT_FLAG}")
    if operation == Operation.EDIT:
        return f"&action=display&pagename=edit.jsp&func=edit&tran={name}{SILENT_FLAG}"
    if operation == Operation.EDIT_ALL:
        return f"&action=display&pagename=edit.jsp&func=editall&tran={name}{SILENT_FLAG}"
    if operation == Operation.CREATE:
        return f"&action=display&pagename=edit.jsp&func=editadd&tran={name}{SILENT_FLAG}"
    if operation == Operation.DELETE:
        return f"&action=display&pagename=list.jsp&func=delete&tran={name}{SILENT_FLAG}"
    if operation == Operation.APP:
        return f"&func={name}&frow={start_row}&rpp={rows_per_page}{SILENT_FLAG}"
    if operation == Operation.ATTACH:
        return f"&func={name}{SILENT_FLAG}"
    if operation == Operation.ROW_COUNT:
        # No leading "&" before func
        return f"func=displayrowct&tran={name}{SILENT_FLAG}"
    raise ValidationException(f"Operation {operation.value!r} has no webservice suffix", field="operation")


def build_request(
    base_url: str,
    operation: Operation,
    name: str = "",
    *,
    data: Optional[Mapping[str, Any]] = None,
    filter: Optional[List[FilterClause]] = None,
    eid: EidInput = None,
    form_data: Optional[FormData] = None,
    start_row: int = DEFAULT_START_ROW,
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE,
) -> RequestDescriptor:
    """
    Build the request descriptor for one operation.

    Args:
        base_url: Server origin without trailing slash
        operation: Logical operation
        name: Transaction, function name or custom path
        data: Form payload
        filter: Clauses for view/delete/app/rowCount/attach/custom
        eid: Record identifier for edit/editAll
        form_data: Multipart payload for attach
        start_row: First row for paginated operations
        rows_per_page: Page size for paginated operations

    Returns:
        RequestDescriptor: URL, headers and body ready for dispatch
    """
    if operation != Operation.LOGIN and (not isinstance(name, str) or not name):
        raise ValidationException(
            f"A non-empty name is required for {operation.value}",
            field="transaction",
        )

    if operation == Operation.CUSTOM:
        url = base_url + CONNECT_SUBD + name
    else:
        url = base_url + CONNECT_NOSESSIONFN + build_url_suffix(operation, name, start_row, rows_per_page)

    body = serialize_data(data)

    if operation in (Operation.EDIT, Operation.EDIT_ALL):
        body += build_eid_fragment(eid)
    elif operation == Operation.DELETE:
        body += build_filter_string(filter or [], EID_PARAM)
    elif operation != Operation.LOGIN:
        body += build_filter_string(filter or [], FILTER_PARAM)

    if operation == Operation.ATTACH:
        form_data = form_data or FormData()
        return RequestDescriptor(
            operation=operation,
            url=url + body,
            form_fields=dict(form_data.fields),
            files=dict(form_data.files),
        )

    return RequestDescriptor(
        operation=operation,
        url=url,
        headers=dict(FORM_HEADERS),
        body=body,
    )


class RequestBuilder:
    """
    Builds descriptors for one server, applying instance pagination defaults.

    One method per logical operation; none of them perform I/O.
    """

    def __init__(
        self,
        base_url: str,
        rows_per_page: int = DEFAULT_ROWS_PER_PAGE,
        start_row: int = DEFAULT_START_ROW,
    ):
        self.base_url = base_url.rstrip("/")
        self.rows_per_page = rows_per_page
        self.start_row = start_row

    def _page(self, start_row: Optional[int], rows_per_page: Optional[int]) -> dict:
        return {
            "start_row": start_row or self.start_row,
            "rows_per_page": rows_per_page or self.rows_per_page,
        }

    def login(self, data: Optional[Mapping[str, Any]] = None) -> RequestDescriptor:
        return build_request(self.base_url, Operation.LOGIN, data=data)

    def view(
        self,
        transaction: str,
        filter: Optional[List[FilterClause]] = None,
        start_row: Optional[int] = None,
        rows_per_page: Optional[int] = None,
    ) -> RequestDescriptor:
        return build_request(
            self.base_url, Operation.VIEW, transaction,
            filter=filter, **self._page(start_row, rows_per_page),
        )

    def create(self, transaction: str, data: Optional[Mapping[str, Any]]) -> RequestDescriptor:
        return build_request(self.base_url, Operation.CREATE, transaction, data=data)

    def edit(self, transaction: str, data: Optional[Mapping[str, Any]], eid: EidInput) -> RequestDescriptor:
        return build_request(self.base_url, Operation.EDIT, transaction, data=data, eid=eid)

    def edit_all(self, transaction: str, data: Optional[Mapping[str, Any]], eid: EidInput) -> RequestDescriptor:
        return build_request(self.base_url, Operation.EDIT_ALL, transaction, data=data, eid=eid)

    def delete(self, transaction: str, filter: Optional[List[FilterClause]]) -> RequestDescriptor:
        return build_request(self.base_url, Operation.DELETE, transaction, filter=filter)

    def app(
        self,
        func_name: str,
        data: Optional[Mapping[str, Any]] = None,
        filter: Optional[List[FilterClause]] = None,
        start_row: Optional[int] = None,
        rows_per_page: Optional[int] = None,
    ) -> RequestDescriptor:
        return build_request(
            self.base_url, Operation.APP, func_name,
            data=data, filter=filter, **self._page(start_row, rows_per_page),
        )

    def row_count(self, transaction: str, filter: Optional[List[FilterClause]] = None) -> RequestDescriptor:
        return build_request(self.base_url, Operation.ROW_COUNT, transaction, filter=filter)

    def attach(
        self,
        func_name: str,
        form_data: Optional[FormData],
        filter: Optional[List[FilterClause]] = None,
    ) -> RequestDescriptor:
        return build_request(self.base_url, Operation.ATTACH, func_name, filter=filter, form_data=form_data)

    def custom(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        filter: Optional[List[FilterClause]] = None,
    ) -> RequestDescriptor:
        return build_request(self.base_url, Operation.CUSTOM, path, data=data, filter=filter)
