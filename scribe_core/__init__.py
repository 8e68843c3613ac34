"""
scribe_core package.

Design intent:
- Stitch streamed transcript fragments into stable paragraphs.
- Track human edits to AI-generated note sections at character granularity.
- Keep domain modules (transcript/provenance/note) free of transport concerns.
"""
