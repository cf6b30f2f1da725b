"""
Read-side composition of the content store and the progress tracker.
"""

import content_store
import progress_tracker
from schemas import ProgressSummary


def rounded_percent(completed: int, total: int) -> int:
    """100 * completed / total rounded half up, 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_progress_summary(user_id: str) -> ProgressSummary:
    completed = len(progress_tracker.get_progress(user_id).chapters_completed)
    total = content_store.count_active_chapters()
    return ProgressSummary(completed=completed, total=total, percent=rounded_percent(completed, total))
