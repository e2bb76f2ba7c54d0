"""
Utility functions and helpers for the catalog engine.
"""

from .mongo import to_object_id, to_object_ids, utcnow

__all__ = ["to_object_id", "to_object_ids", "utcnow"]
