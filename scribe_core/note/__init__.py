"""
Structured note boundary.

Design intent:
- Resolve section order from template components.
- Build save payload rows with per-section edit counts.
- Attribute saves to the clinician or the editor from tracked edits.
"""
