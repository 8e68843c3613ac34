"""
API boundary for scribe_core.

Design intent:
- Expose stitching and provenance tracking over HTTP.
- Keep request validation typed and handlers thin.
"""
