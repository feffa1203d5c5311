"""Utility functions for AuthGate.

This package provides centralized utilities for common operations.
Import convention: use module-level imports for clarity.

    from authgate.utils import isodatetime, uid
    timestamp = isodatetime.now()
    token = uid.generate_uuid()
"""

from . import isodatetime, uid

__all__ = ["isodatetime", "uid"]
