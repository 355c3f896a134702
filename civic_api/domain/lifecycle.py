# SPDX-License-Identifier: Apache-2.0

"""
Issue lifecycle domain logic.

This module contains pure functions for report validation, issue
construction, status transitions, citizen messages and list filtering.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from pydantic import ValidationError

from ..models.entities import Issue, GeoPoint
from ..models.enums import IssueStatus
from ..models.requests import SubmitReportRequest
from ..middleware.error_handler import ValidationException
from ..middleware.validation import format_validation_errors
from .routing import route_department


# Required report fields and the payload keys accepted for each
REQUIRED_REPORT_FIELDS = {
    "category": ("category", "issueType"),
    "latitude": ("latitude",),
    "longitude": ("longitude",),
    "description": ("description",),
    "contact": ("contact", "citizenContact"),
}

# Forward-only; steps may be skipped; Resolved is terminal
ALLOWED_TRANSITIONS: Dict[IssueStatus, List[IssueStatus]] = {
    IssueStatus.PENDING: [IssueStatus.ACKNOWLEDGED, IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED],
    IssueStatus.ACKNOWLEDGED: [IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED],
    IssueStatus.IN_PROGRESS: [IssueStatus.RESOLVED],
    IssueStatus.RESOLVED: [],
}


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool
    errors: List[str]
    warnings: List[str] = None

    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


@dataclass
class StatusChange:
    """Store patch needed to move an issue to a new status."""
    new_status: IssueStatus
    changed: bool
    updates: Dict[str, Any] = field(default_factory=dict)
    unset: List[str] = field(default_factory=list)

    @property
    def resolves(self) -> bool:
        return self.changed and self.new_status == IssueStatus.RESOLVED


@dataclass
class IssueFilters:
    """Filters for the staff issue list."""
    status: Optional[IssueStatus] = None
    search_term: Optional[str] = None


def validate_report_payload(payload: Dict[str, Any]) -> ValidationResult:
    """
    Check that every required report field is present and non-empty.

    Args:
        payload: Raw report body

    Returns:
        ValidationResult listing each missing field
    """
    errors = []

    for field_name, keys in REQUIRED_REPORT_FIELDS.items():
        value = next((payload[key] for key in keys if key in payload), None)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"Missing required field: {field_name}")

    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def parse_report(payload: Dict[str, Any]) -> SubmitReportRequest:
    """
    Validate a raw report body and convert it to a typed request.

    Raises:
        ValidationException: Listing every missing or malformed field
    """
    if not isinstance(payload, dict):
        raise ValidationException("Report body must be a JSON object")

    presence = validate_report_payload(payload)
    if not presence.is_valid:
        raise ValidationException(
            "Missing required fields. Please fill out all parts of the form.",
            [{"field": error.split(": ", 1)[1], "message": error, "type": "missing"}
             for error in presence.errors]
        )

    try:
        return SubmitReportRequest.model_validate(payload)
    except ValidationError as e:
        raise ValidationException("Report contains invalid values", format_validation_errors(e))


def build_issue(report: SubmitReportRequest, tracking_id: str, now: datetime) -> Issue:
    """Construct a new Pending issue from a validated report."""
    return Issue(
        tracking_id=tracking_id,
        category=report.category,
        description=report.description,
        location=GeoPoint(
            coordinates=[report.longitude, report.latitude],
            landmark=report.landmark
        ),
        photo_ref=report.photo_ref,
        status=IssueStatus.PENDING,
        contact=report.contact,
        department=route_department(report.category),
        resolved_at=None,
        created_at=now,
        updated_at=now
    )


def parse_status(value: Any) -> IssueStatus:
    """
    Convert a raw status value to IssueStatus.

    Raises:
        ValidationException: If the value is not one of the lifecycle statuses
    """
    try:
        return IssueStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in IssueStatus)
        raise ValidationException(
            f"Invalid status '{value}'. Allowed values: {allowed}",
            [{"field": "status", "message": f"Must be one of: {allowed}", "type": "enum", "input": value}]
        )


def validate_status_transition(
    current_status: IssueStatus,
    new_status: IssueStatus
) -> ValidationResult:
    """
    Validate an issue status transition against the lifecycle table.

    Args:
        current_status: Current issue status
        new_status: Desired new status

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if new_status not in ALLOWED_TRANSITIONS.get(current_status, []):
        errors.append(
            f"Invalid status transition from {current_status.value} to {new_status.value}"
        )

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors
    )


def plan_status_change(
    issue: Issue,
    new_status: IssueStatus,
    now: datetime,
    enforce_order: bool = True
) -> StatusChange:
    """
    Work out the store patch for a status update.

    Setting the current status again is a no-op, so repeated resolves never
    move ``resolvedAt``. With ``enforce_order`` off any transition is
    allowed; leaving Resolved then clears ``resolvedAt``.

    Raises:
        ValidationException: If the transition is not allowed
    """
    current_status = IssueStatus(issue.status)

    if new_status == current_status:
        return StatusChange(new_status=new_status, changed=False)

    if enforce_order:
        validation = validate_status_transition(current_status, new_status)
        if not validation.is_valid:
            raise ValidationException(
                validation.errors[0],
                [{"field": "status", "message": error, "type": "transition"} for error in validation.errors]
            )

    change = StatusChange(
        new_status=new_status,
        changed=True,
        updates={"status": new_status.value, "updatedAt": now}
    )

    if new_status == IssueStatus.RESOLVED:
        change.updates["resolvedAt"] = now
    elif issue.resolved_at is not None:
        change.unset.append("resolvedAt")

    return change


def creation_message(issue: Issue) -> str:
    """Confirmation sent to the citizen once a report is stored."""
    return (
        f"Thank you! Your issue report (#{issue.tracking_id} - {issue.category}) has been received. "
        f"We will keep you updated on its progress."
    )


def status_change_message(tracking_id: str, status: IssueStatus) -> str:
    """Update sent to the citizen when staff change the status."""
    return f'Update for issue #{tracking_id}: The status has been changed to "{status.value}".'


def filter_issues(issues: List[Issue], filters: IssueFilters) -> List[Issue]:
    """
    Filter issues based on criteria.

    Args:
        issues: List of issues to filter
        filters: Filter criteria

    Returns:
        Filtered list of issues, order preserved
    """
    filtered = issues

    if filters.status is not None:
        status = IssueStatus(filters.status)
        filtered = [issue for issue in filtered if issue.status == status]

    if filters.search_term and filters.search_term.strip():
        term = filters.search_term.strip()
        filtered = [issue for issue in filtered if term in issue.tracking_id]

    return filtered
