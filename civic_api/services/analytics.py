# SPDX-License-Identifier: Apache-2.0

"""
Dashboard analytics service.
"""

import logging
from opentelemetry import trace

from ..domain import analytics as analytics_domain
from ..models.enums import IssueStatus
from ..models.responses import AnalyticsSummary
from .mongodb import MongoDBService, ISSUES_COLLECTION

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AnalyticsService:
    """Read-only aggregation over the issue collection."""

    def __init__(self, mongo_service: MongoDBService):
        self.mongo_service = mongo_service

    def compute_summary(self) -> AnalyticsSummary:
        """
        Build the dashboard summary.

        Store failures propagate as ServiceUnavailableException; a partial
        summary is never returned.
        """
        with tracer.start_as_current_span("analytics.compute_summary") as span:
            resolved = self.mongo_service.find_many(
                ISSUES_COLLECTION, {"status": IssueStatus.RESOLVED.value}
            )
            category_counts = self.mongo_service.aggregate_counts(ISSUES_COLLECTION, "category")
            status_counts = self.mongo_service.aggregate_counts(ISSUES_COLLECTION, "status")

            summary = analytics_domain.build_summary(resolved, category_counts, status_counts)

            span.set_attributes({
                "analytics.total_issues": summary.total_issues,
                "analytics.resolved_issues": summary.resolved_issues
            })
            logger.info(
                "Analytics summary computed",
                extra={
                    "extra_fields": {
                        "total_issues": summary.total_issues,
                        "resolved_issues": summary.resolved_issues,
                        "avg_resolution_time_hours": round(summary.avg_resolution_time_hours, 3)
                    }
                }
            )
            return summary
