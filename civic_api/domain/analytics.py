# SPDX-License-Identifier: Apache-2.0

"""
Analytics domain logic.

Pure folds over stored issue documents. Documents are read raw rather than
through the Issue model so that records with missing or malformed timestamps
are skipped instead of failing the whole summary.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional
from datetime import datetime

from ..models.enums import IssueStatus
from ..models.responses import AnalyticsSummary, CategoryCount, StatusCount


SECONDS_PER_HOUR = 3600.0


def resolution_hours(document: Mapping[str, Any]) -> Optional[float]:
    """
    Hours between report and resolution for one issue document.

    Returns None when the issue does not qualify: not Resolved, either
    timestamp missing or not a datetime, or resolved before it was created.
    """
    if document.get("status") != IssueStatus.RESOLVED.value:
        return None

    created_at = document.get("createdAt")
    resolved_at = document.get("resolvedAt")
    if not isinstance(created_at, datetime) or not isinstance(resolved_at, datetime):
        return None
    if resolved_at < created_at:
        return None

    return (resolved_at - created_at).total_seconds() / SECONDS_PER_HOUR


def average_resolution_hours(documents: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Mean resolution time over qualifying issues.

    Returns:
        Dict with ``average`` (0.0 when nothing qualifies) and ``count``
    """
    durations = [hours for hours in map(resolution_hours, documents) if hours is not None]
    if not durations:
        return {"average": 0.0, "count": 0}
    return {"average": sum(durations) / len(durations), "count": len(durations)}


def rank_category_counts(counts: Mapping[str, int]) -> List[CategoryCount]:
    """Order category counts by count descending, then name ascending."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryCount(category=category, count=count) for category, count in ranked]


def order_status_counts(counts: Mapping[str, int]) -> List[StatusCount]:
    """
    Report status counts in lifecycle order.

    Statuses with no issues are listed with a zero count; values outside the
    lifecycle (legacy data) follow in name order.
    """
    ordered = [
        StatusCount(status=status.value, count=counts.get(status.value, 0))
        for status in IssueStatus
    ]
    known = {status.value for status in IssueStatus}
    for status in sorted(key for key in counts if key not in known):
        ordered.append(StatusCount(status=status, count=counts[status]))
    return ordered


def count_by(documents: Iterable[Mapping[str, Any]], field: str) -> Dict[str, int]:
    """Count documents per value of ``field``; missing values are skipped."""
    counts: Dict[str, int] = {}
    for document in documents:
        value = document.get(field)
        if value is None:
            continue
        counts[value] = counts.get(value, 0) + 1
    return counts


def build_summary(
    resolved_documents: Iterable[Mapping[str, Any]],
    category_counts: Mapping[str, int],
    status_counts: Mapping[str, int]
) -> AnalyticsSummary:
    """
    Assemble the dashboard summary.

    Args:
        resolved_documents: Issue documents to average over (non-Resolved
            ones are ignored)
        category_counts: Issue count per category
        status_counts: Issue count per status

    Returns:
        AnalyticsSummary
    """
    resolution = average_resolution_hours(resolved_documents)

    return AnalyticsSummary(
        avg_resolution_time_hours=resolution["average"],
        resolved_issues=resolution["count"],
        total_issues=sum(status_counts.values()),
        trend_data=rank_category_counts(category_counts),
        status_counts=order_status_counts(status_counts)
    )
