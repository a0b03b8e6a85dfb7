"""
igservice - Async client for the webservice.jsp transaction API.

Translates view/create/edit/delete/app calls into the service's
query-string dialect and normalizes its JSON envelope.
"""

from igservice.adapters.request_builder import (
    FILTER_AND,
    FILTER_EQUALS,
    FILTER_EXACT,
    FILTER_OR,
    RequestBuilder,
)
from igservice.client import IGServiceClient
from igservice.core.exceptions import (
    IGServiceException,
    ServiceError,
    TransportError,
    ValidationException,
)
from igservice.domain.models import (
    ClientConfig,
    FilterClause,
    FormData,
    MatchMode,
    NormalizedResult,
    Operation,
    RequestDescriptor,
    RequestOptions,
)

__version__ = "0.1.0"

__all__ = [
    'IGServiceClient',
    'RequestBuilder',
    'FILTER_EQUALS',
    'FILTER_EXACT',
    'FILTER_AND',
    'FILTER_OR',
    'IGServiceException',
    'ServiceError',
    'TransportError',
    'ValidationException',
    'ClientConfig',
    'FilterClause',
    'FormData',
    'MatchMode',
    'NormalizedResult',
    'Operation',
    'RequestDescriptor',
    'RequestOptions',
]
