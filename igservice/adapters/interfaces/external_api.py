from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from igservice.domain.models import RequestDescriptor

# Type variables for generics
T = TypeVar('T')  # Generic type for decoded response data
R = TypeVar('R')  # Generic type for normalized/return data


class ExternalAPIAdaptorInterface(Generic[T, R], ABC):
    """
    Abstract base interface for web service adaptors.

    Splits every call into a transport step that turns a prepared request
    into decoded data, and a normalization step that turns decoded data
    into the shape callers work with.

    Type Parameters:
        T: The type of data decoded from the service
        R: The type of normalized data returned after processing
    """

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> T:
        """
        Dispatches a prepared request and decodes the reply.

        Args:
            request: The descriptor produced by a request builder.

        Returns:
            T: The decoded response body.

        Raises:
            TransportError: If the request fails or the reply cannot be decoded.
        """
        pass

    @abstractmethod
    def normalize(self, data: T) -> R:
        """
        Converts decoded service data to the normalized result.

        Args:
            data: The decoded response body.

        Returns:
            R: The normalized result.

        Raises:
            ServiceError: If the service reported a failure.
        """
        pass

    async def send_and_normalize(self, request: RequestDescriptor) -> R:
        """
        Convenience method that sends a request and normalizes its reply.

        Args:
            request: The descriptor produced by a request builder.

        Returns:
            R: The normalized result.
        """
        data = await self.send(request)
        return self.normalize(data)
