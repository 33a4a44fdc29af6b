"""
Domain package for rowmapper.

Exports the sample record types used by the CLI demo.
"""

from rowmapper.domain.models import User

__all__ = [
    "User",
]
