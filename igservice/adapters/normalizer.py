from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from igservice.core.exceptions import ServiceError, TransportError
from igservice.core.logging import get_logger
from igservice.domain.models import FieldDefinition, NormalizedResult

logger = get_logger(__name__)

STATUS_OK = "ok"
UNKNOWN_ERROR_MESSAGE = "Unknown server error"


def _value_or_none(value: Any) -> Any:
    """Treat the envelope's empty markers (missing, "", 0, False) as absent."""
    if value is None or value is False or value == "":
        return None
    if isinstance(value, (int, float)) and value == 0:
        return None
    return value


def build_field_set(data_def: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """
    Map each column's display name, with and without spaces, to its column number.

    Args:
        data_def: The envelope's ``DataDef`` list, may be None

    Returns:
        Dict[str, Any]: Display name (both spellings) to column number

    Raises:
        TransportError: If an entry lacks ``DisplayName`` or ``ColNum``
    """
    field_set: Dict[str, Any] = {}
    if not data_def:
        return field_set

    for entry in data_def:
        try:
            definition = FieldDefinition.model_validate(entry)
        except ValidationError as e:
            raise TransportError(
                "Malformed field definition in response envelope",
                context={"entry": entry},
                original_exception=e,
            ) from e
        field_set[definition.display_name] = definition.col_num
        field_set[definition.display_name.replace(" ", "")] = definition.col_num

    return field_set


def extract_rsp(envelope: Any) -> Dict[str, Any]:
    """Return the ``rsp`` object of a decoded envelope."""
    rsp = envelope.get("rsp") if isinstance(envelope, dict) else None
    if not isinstance(rsp, dict):
        raise TransportError(
            "Malformed response envelope: missing 'rsp' object",
            context={"envelope_type": type(envelope).__name__},
        )
    return rsp


def normalize_envelope(envelope: Any) -> NormalizedResult:
    """
    Convert a decoded envelope into a :class:`NormalizedResult`.

    Raises:
        ServiceError: If ``rsp.stat`` is not "ok"
        TransportError: If the envelope does not have the expected shape
    """
    rsp = extract_rsp(envelope)

    if rsp.get("stat") != STATUS_OK:
        message = rsp.get("errormsg") or UNKNOWN_ERROR_MESSAGE
        logger.warning(f"Web service returned status {rsp.get('stat')!r}: {message}")
        raise ServiceError(
            message,
            response=envelope,
            context={"stat": rsp.get("stat")},
        )

    return NormalizedResult(
        raw=envelope,
        data=_value_or_none(rsp.get("Data")),
        field_set=build_field_set(rsp.get("DataDef")),
        transaction=_value_or_none(rsp.get("Transaction")),
        view=_value_or_none(rsp.get("CurrViewName")),
        sql=_value_or_none(rsp.get("SQL")),
    )
