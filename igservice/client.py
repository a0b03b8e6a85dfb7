import secrets
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from igservice.adapters import request_builder
from igservice.adapters.interfaces.external_api import ExternalAPIAdaptorInterface
from igservice.adapters.normalizer import normalize_envelope
from igservice.adapters.request_builder import RequestBuilder
from igservice.core.config import Settings, get_settings
from igservice.core.exceptions import TransportError, ValidationException
from igservice.core.logging import get_logger, new_request_id, request_id
from igservice.domain.models import (
    ClientConfig,
    EidInput,
    FilterInput,
    FormData,
    NormalizedResult,
    RequestDescriptor,
    RequestOptions,
    coerce_filter,
)

logger = get_logger(__name__)

OptionsInput = Union[RequestOptions, Mapping[str, Any], None]
ConfigInput = Union[ClientConfig, Mapping[str, Any], None]


class IGServiceClient(ExternalAPIAdaptorInterface[Any, NormalizedResult]):
    """
    Async client for the ``webservice.jsp`` transaction API.

    Every public operation issues exactly one POST and resolves to a
    :class:`NormalizedResult`, except :meth:`attach` which returns the
    decoded JSON untouched. Instances hold read-only configuration only,
    so any number of calls may be in flight at once.

    Usage::

        async with IGServiceClient("http://localhost:8010", {"rowsPerPage": 50}) as api:
            result = await api.view("Orders", {"filter": [["Status", "open", "exact"]]})
    """

    FILTER_EQUALS = request_builder.FILTER_EQUALS
    FILTER_EXACT = request_builder.FILTER_EXACT
    FILTER_AND = request_builder.FILTER_AND
    FILTER_OR = request_builder.FILTER_OR

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: ConfigInput = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server origin including scheme, e.g. ``http://localhost:8010``.
                Read from ``IGSERVICE_BASE_URL`` when omitted.
            config: ``ClientConfig`` or mapping with ``rowsPerPage``/``startRow``.
                Unset values come from settings.
            transport: Optional httpx transport, used for every call
            settings: Settings to read defaults from; cached settings if omitted

        Raises:
            ValidationException: If no base URL is available or config is invalid
        """
        settings = settings or get_settings()

        base_url = base_url or settings.BASE_URL
        if not base_url:
            raise ValidationException("A base URL is required", field="base_url")
        self._check_base_url(base_url)

        self.config = self._build_config(config, settings)
        self.base_url = base_url.rstrip("/")
        self.requests = RequestBuilder(
            self.base_url,
            rows_per_page=self.config.rows_per_page,
            start_row=self.config.start_row,
        )
        self._transport = transport

        logger.debug(f"Client initialized for {self.base_url}")

    @staticmethod
    def _check_base_url(base_url: str) -> None:
        try:
            scheme = httpx.URL(base_url).scheme
        except httpx.InvalidURL as e:
            raise ValidationException(f"Invalid base URL {base_url!r}", field="base_url") from e
        if scheme not in ("http", "https"):
            raise ValidationException(
                f"Base URL {base_url!r} must start with http:// or https://",
                field="base_url",
            )

    @staticmethod
    def _build_config(config: ConfigInput, settings: Settings) -> ClientConfig:
        defaults = ClientConfig(
            rows_per_page=settings.ROWS_PER_PAGE,
            start_row=settings.START_ROW,
            request_timeout=settings.REQUEST_TIMEOUT,
        )
        if config is None:
            return defaults
        try:
            overrides = config if isinstance(config, ClientConfig) else ClientConfig.model_validate(config)
        except ValidationError as e:
            raise ValidationException(
                "Invalid client configuration",
                field="config",
                context={"errors": e.errors(include_url=False)},
            ) from e
        return defaults.model_copy(update=overrides.model_dump(exclude_unset=True))

    @staticmethod
    def _options(options: OptionsInput) -> RequestOptions:
        if options is None:
            return RequestOptions()
        if isinstance(options, RequestOptions):
            return options
        try:
            return RequestOptions.model_validate(options)
        except ValidationError as e:
            raise ValidationException(
                "Invalid request options",
                field="options",
                context={"errors": e.errors(include_url=False)},
            ) from e

    @staticmethod
    def _filter(clauses: Optional[FilterInput]) -> list:
        try:
            return coerce_filter(clauses)
        except (ValueError, ValidationError) as e:
            raise ValidationException(str(e), field="filter") from e

    async def __aenter__(self) -> "IGServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    # ---- Transport ----

    async def send(self, request: RequestDescriptor) -> Any:
        """
        POST a prepared request and decode its JSON body.

        HTTP status codes are not inspected; an error status with a JSON
        body is decoded like any other reply.

        Raises:
            TransportError: On network failure or a body that is not JSON
        """
        token = request_id.set(request_id.get() or new_request_id())
        try:
            logger.debug(f"{request.method} {request.operation.value} {request.url}")
            try:
                async with httpx.AsyncClient(
                    transport=self._transport,
                    timeout=self.config.request_timeout,
                ) as http:
                    if request.is_multipart:
                        response = await http.request(request.method, request.url, **self._multipart(request))
                    else:
                        response = await http.request(
                            request.method, request.url, content=request.body, headers=request.headers,
                        )
            except httpx.HTTPError as e:
                logger.error(f"Request error during {request.operation.value}: {str(e)}")
                raise TransportError(
                    f"Failed to reach web service: {str(e)}",
                    context={"operation": request.operation.value, "url": request.url},
                    original_exception=e,
                ) from e

            try:
                decoded = response.json()
            except ValueError as e:
                logger.error(f"Undecodable response for {request.operation.value} (HTTP {response.status_code})")
                raise TransportError(
                    "Web service returned a body that is not valid JSON",
                    status_code=response.status_code,
                    context={"operation": request.operation.value, "url": request.url},
                    original_exception=e,
                ) from e

            logger.debug(f"Decoded {request.operation.value} response (HTTP {response.status_code})")
            return decoded
        finally:
            request_id.reset(token)

    @staticmethod
    def _multipart(request: RequestDescriptor) -> Dict[str, Any]:
        """
        Request arguments that always encode as multipart/form-data.

        Text fields go in as file parts without a filename, since httpx only
        switches to multipart when ``files`` is non-empty. A form with no
        parts at all is sent as a closing boundary on its own.
        """
        parts = [(name, (None, value)) for name, value in (request.form_fields or {}).items()]
        parts.extend((request.files or {}).items())
        if parts:
            return {"files": parts}
        boundary = secrets.token_hex(16)
        return {
            "content": f"--{boundary}--\r\n".encode(),
            "headers": {"Content-Type": f"multipart/form-data; boundary={boundary}"},
        }

    def normalize(self, data: Any) -> NormalizedResult:
        return normalize_envelope(data)

    async def send_and_normalize(self, request: RequestDescriptor) -> NormalizedResult:
        """Send and normalize under one request id, so envelope errors are logged with it."""
        token = request_id.set(new_request_id())
        try:
            return await super().send_and_normalize(request)
        finally:
            request_id.reset(token)

    # ---- Operations ----

    async def login(self, data: Optional[Mapping[str, Any]] = None) -> NormalizedResult:
        """Call the sign-in function; ``data`` carries credentials if the server needs them."""
        return await self.send_and_normalize(self.requests.login(data))

    async def view(self, transaction: str, options: OptionsInput = None) -> NormalizedResult:
        """
        List rows of a transaction.

        Args:
            transaction: Transaction name
            options: Pagination and filter, e.g.
                ``{"rowsPerPage": 10, "filter": [["Age", "30", "exact"]]}``
        """
        opts = self._options(options)
        request = self.requests.view(
            transaction,
            filter=opts.filter,
            start_row=opts.start_row,
            rows_per_page=opts.rows_per_page,
        )
        return await self.send_and_normalize(request)

    async def create(
        self,
        transaction: str,
        data: Mapping[str, Any],
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """Insert a record. Any filter in ``options`` is ignored."""
        self._options(options)
        return await self.send_and_normalize(self.requests.create(transaction, data))

    async def edit(
        self,
        transaction: str,
        data: Mapping[str, Any],
        eid: EidInput,
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """
        Update one record.

        Args:
            transaction: Transaction name
            data: Fields to write
            eid: Record id string, or a ``[field, value]`` pair matched exactly
            options: Accepted for symmetry; the identifier replaces any filter
        """
        self._options(options)
        return await self.send_and_normalize(self.requests.edit(transaction, data, eid))

    async def edit_all(
        self,
        transaction: str,
        data: Mapping[str, Any],
        eid: EidInput,
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """Update every record the server matches for ``eid``."""
        self._options(options)
        return await self.send_and_normalize(self.requests.edit_all(transaction, data, eid))

    async def delete(
        self,
        transaction: str,
        filter: Optional[FilterInput],
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """
        Delete records matching ``filter``.

        An empty filter is sent as-is and the server deletes every row.
        """
        self._options(options)
        return await self.send_and_normalize(self.requests.delete(transaction, self._filter(filter)))

    async def app(
        self,
        func_name: str,
        data: Optional[Mapping[str, Any]] = None,
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """Invoke a named server-side function with data and pagination."""
        opts = self._options(options)
        request = self.requests.app(
            func_name,
            data,
            filter=opts.filter,
            start_row=opts.start_row,
            rows_per_page=opts.rows_per_page,
        )
        return await self.send_and_normalize(request)

    async def row_count(self, transaction: str, options: OptionsInput = None) -> NormalizedResult:
        opts = self._options(options)
        return await self.send_and_normalize(self.requests.row_count(transaction, filter=opts.filter))

    async def attach(
        self,
        func_name: str,
        form_data: FormData,
        options: OptionsInput = None,
    ) -> Any:
        """
        Upload files as multipart form data.

        The reply is returned as decoded JSON without checking ``rsp.stat``;
        upload failures must be interpreted by the caller.
        """
        opts = self._options(options)
        return await self.send(self.requests.attach(func_name, form_data, filter=opts.filter))

    async def custom(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        options: OptionsInput = None,
    ) -> NormalizedResult:
        """POST to ``<base_url>/apps/<path>`` and validate the envelope."""
        opts = self._options(options)
        return await self.send_and_normalize(self.requests.custom(path, data, filter=opts.filter))
