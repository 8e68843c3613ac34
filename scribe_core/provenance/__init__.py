"""
Note section provenance boundary.

Design intent:
- Track which characters of AI-generated sections a human has edited.
- Keep edit counting deterministic and bounded per edit event.
- Persist compact run-length tags, never duplicated note text.
"""
