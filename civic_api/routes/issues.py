# SPDX-License-Identifier: Apache-2.0

"""
Staff issue management endpoints.

This module implements the dashboard issue list, status updates and
staff assignment.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from ..models.requests import IssueListQuery, UpdateStatusRequest, AssignStaffRequest
from ..middleware.validation import get_request_payload, validate_model

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

issues_tag = Tag(name="Issues", description="Issue triage and lifecycle management")
issues_bp = APIBlueprint(
    'issues',
    __name__,
    url_prefix='/api',
    abp_tags=[issues_tag]
)


@issues_bp.get('/issues')
def list_issues():
    """
    List all issues, newest first.

    Optional ``status`` narrows to one lifecycle status; optional ``search``
    matches a tracking ID substring.
    """
    query_data = {key: value for key, value in request.args.to_dict().items() if value}
    query = validate_model(IssueListQuery, query_data, source="query")

    with tracer.start_as_current_span("route.list_issues") as span:
        issues = current_app.issue_service.list_issues(status=query.status, search=query.search)
        span.set_attribute("issues.count", len(issues))

        body = current_app.hal_formatter.format_issue_collection(
            [issue.to_public_dict() for issue in issues],
            {"status": query.status, "search": query.search}
        )
        return jsonify(body)


@issues_bp.post('/update_status')
def update_status():
    """Move an issue to a new status and notify the citizen."""
    update = validate_model(UpdateStatusRequest, get_request_payload())

    issue = current_app.issue_service.set_status(update.tracking_id, update.status)

    return jsonify({
        'message': 'Status updated successfully!',
        'issue': current_app.hal_formatter.format_issue(issue.to_public_dict())
    })


@issues_bp.post('/assign_issue')
def assign_issue():
    """Assign an issue to a staff member."""
    assignment = validate_model(AssignStaffRequest, get_request_payload())

    issue = current_app.issue_service.assign_staff(assignment.tracking_id, assignment.staff_id)

    return jsonify({
        'message': 'Issue assigned successfully!',
        'issue': current_app.hal_formatter.format_issue(issue.to_public_dict())
    })
