# SPDX-License-Identifier: Apache-2.0

"""
Citizen endpoints.

Report intake and public status tracking by tracking ID.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from ..models.requests import TrackingIdPath
from ..middleware.validation import get_request_payload

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

reports_tag = Tag(name="Reports", description="Citizen issue intake and tracking")
reports_bp = APIBlueprint(
    'reports',
    __name__,
    url_prefix='/api',
    abp_tags=[reports_tag]
)


@reports_bp.post('/report')
def submit_report():
    """
    Submit an issue report.

    Accepts a JSON body or a form post from the citizen portal. Responds
    with 201 and the tracking ID the citizen uses to follow the issue.
    """
    with tracer.start_as_current_span("route.submit_report"):
        issue = current_app.issue_service.create_issue(get_request_payload())

        body = current_app.hal_formatter.format_report_receipt(
            'Issue reported successfully!', issue.tracking_id
        )
        return jsonify(body), 201


@reports_bp.get('/track_status/<tracking_id>')
def track_status(path: TrackingIdPath):
    """Look up an issue by tracking ID."""
    issue = current_app.issue_service.track_issue(path.tracking_id)
    return jsonify(current_app.hal_formatter.format_issue(issue.to_public_dict()))
