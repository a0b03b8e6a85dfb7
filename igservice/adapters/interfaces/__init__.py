from .external_api import ExternalAPIAdaptorInterface

__all__ = [
    'ExternalAPIAdaptorInterface',
]
