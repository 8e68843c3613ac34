"""
Streaming transcript boundary.

Design intent:
- Stitch revised partial/final speech fragments without replaying overlap.
- Emit one transcript entry per speaker pair after a quiet interval.
- Keep transport concerns out of the stitching rules.
"""
