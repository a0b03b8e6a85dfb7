"""
Adapters package for the web service client.

This package contains the pieces that talk the service's dialect:
- Abstract interfaces that define the adaptor contract
- The request builder that renders operations as URLs and bodies
- The normalizer that turns response envelopes into results
"""

# Import the interfaces subpackage to make it available
from . import interfaces

__all__ = [
    'interfaces',
]
