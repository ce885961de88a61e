"""Utility helpers for the ReelShare backend.

Submodules:
- aws: S3/R2 object storage client (signed GETs, deletes)
"""

__all__: list[str] = []
