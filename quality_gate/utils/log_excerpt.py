"""
Log Excerpt Helper
==================
Keeps tool output small enough to ship inside result objects: the head and
tail of the text are kept, the middle is replaced by an omission marker.
"""
from quality_gate.core.config import OUTPUT_EXCERPT_CHARS


def create_log_excerpt(full_log: str, limit: int = OUTPUT_EXCERPT_CHARS) -> str:
    """
    Create an abbreviated log showing the start and end of ``full_log``.

    Parameters
    ----------
    full_log : str
        The complete tool output.
    limit : int
        Maximum number of characters in the returned excerpt.

    Returns
    -------
    str
        ``full_log`` unchanged when it fits, otherwise head + marker + tail,
        never longer than ``limit``.
    """
    if len(full_log) <= limit:
        return full_log

    omitted = len(full_log) - limit
    marker = f"\n... ({omitted} chars omitted) ...\n"
    budget = max(limit - len(marker), 0)
    head = budget // 2
    tail = budget - head
    excerpt = full_log[:head] + marker + (full_log[-tail:] if tail else "")
    return excerpt[:limit]
