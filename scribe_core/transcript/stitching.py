from __future__ import annotations


def merge_incremental(previous: str | None, next_text: str | None) -> str:
    """Join two fragments, collapsing the longest suffix/prefix overlap once.

    A fragment that extends the previous one supersedes it; a fragment already
    contained at the start of the previous one adds nothing.
    """
    prev = previous or ""
    nxt = next_text or ""
    if not prev:
        return nxt
    if not nxt:
        return prev
    if nxt.startswith(prev):
        return nxt
    if prev.startswith(nxt):
        return prev

    k = min(len(prev), len(nxt))
    while k > 0 and not prev.endswith(nxt[:k]):
        k -= 1
    return prev + nxt[k:]
