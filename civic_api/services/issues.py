# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Issue lifecycle service.

Orchestrates report intake, status changes, staff assignment and lookups
on top of the pure rules in ``domain.lifecycle``, the store and the
notification gateway.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pymongo import ASCENDING, DESCENDING

from ..domain import lifecycle
from ..domain.tracking import is_valid_tracking_id, mint_with_retry, DEFAULT_MAX_ATTEMPTS
from ..middleware.error_handler import ConflictException, NotFoundException
from ..models.entities import Issue, Staff, StaffSummary
from .mongodb import MongoDBService, ISSUES_COLLECTION, STAFF_COLLECTION
from .notifier import NotificationGateway
from .credentials import PasswordHasher

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

STATUS_WRITE_ATTEMPTS = 3


class IssueService:
    """Service for the issue lifecycle and staff directory."""

    def __init__(
        self,
        mongo_service: MongoDBService,
        notification_gateway: NotificationGateway,
        clock: Callable[[], datetime] = None,
        rng: random.Random = None,
        enforce_status_order: bool = True,
        max_tracking_attempts: int = DEFAULT_MAX_ATTEMPTS
    ):
        self.mongo_service = mongo_service
        self.notification_gateway = notification_gateway
        self.clock = clock or datetime.utcnow
        self.rng = rng or random.SystemRandom()
        self.enforce_status_order = enforce_status_order
        self.max_tracking_attempts = max_tracking_attempts
        logger.info(
            "Issue service initialized",
            extra={"extra_fields": {"enforce_status_order": enforce_status_order}}
        )

    # Citizen operations

    def create_issue(self, payload: Dict[str, Any]) -> Issue:
        """
        Validate a report, store it as a Pending issue and confirm to the citizen.

        Args:
            payload: Raw report fields (JSON body or form)

        Returns:
            The stored issue

        Raises:
            ValidationException: Missing or malformed fields
            ServiceUnavailableException: Store unavailable or no free tracking ID
        """
        with tracer.start_as_current_span("issues.create_issue") as span:
            report = lifecycle.parse_report(payload)
            now = self.clock()

            def insert(tracking_id: str) -> Issue:
                issue = lifecycle.build_issue(report, tracking_id, now)
                self.mongo_service.create(ISSUES_COLLECTION, issue.to_document())
                return issue

            issue = mint_with_retry(insert, self.rng, self.max_tracking_attempts)

            span.set_attributes({
                "issue.tracking_id": issue.tracking_id,
                "issue.category": issue.category,
                "issue.department": issue.department
            })
            logger.info(
                "Issue reported",
                extra={
                    "extra_fields": {
                        "tracking_id": issue.tracking_id,
                        "category": issue.category,
                        "department": issue.department
                    }
                }
            )

            self._notify(
                issue.contact,
                lifecycle.creation_message(issue),
                event="created",
                tracking_id=issue.tracking_id
            )
            return issue

    def track_issue(self, tracking_id: str) -> Issue:
        """Read-only lookup by tracking ID with the assigned staff resolved."""
        with tracer.start_as_current_span("issues.track_issue") as span:
            span.set_attribute("issue.tracking_id", tracking_id)
            issue = self._get_issue(tracking_id)
            return self._with_staff(issue)

    # Staff operations

    def set_status(self, tracking_id: str, new_status: Any) -> Issue:
        """
        Move an issue to a new status and tell the citizen.

        Setting the current status again returns the stored issue unchanged,
        without a write or a notification. The write only lands if the stored
        status is still the one the transition was checked against; otherwise
        the change is re-planned against the fresh copy, so a concurrent
        resolve either wins outright or makes this transition invalid.

        Raises:
            ValidationException: Unknown status or disallowed transition
            NotFoundException: No issue with this tracking ID
            ConflictException: The issue kept changing underneath the update
        """
        with tracer.start_as_current_span("issues.set_status") as span:
            status = lifecycle.parse_status(new_status)
            issue = self._get_issue(tracking_id)
            original_status = issue.status

            span.set_attributes({
                "issue.tracking_id": tracking_id,
                "issue.status.from": issue.status,
                "issue.status.to": status.value
            })

            document = None
            for attempt in range(1, STATUS_WRITE_ATTEMPTS + 1):
                change = lifecycle.plan_status_change(issue, status, self.clock(), self.enforce_status_order)
                if not change.changed:
                    if attempt > 1:
                        # Another request made the same change first and already notified
                        logger.info(
                            "Status already changed by a concurrent update",
                            extra={"extra_fields": {"tracking_id": tracking_id, "status": status.value}}
                        )
                    else:
                        logger.info(
                            "Status unchanged, nothing to write",
                            extra={"extra_fields": {"tracking_id": tracking_id, "status": status.value}}
                        )
                    return self._with_staff(issue)

                filters: Dict[str, Any] = {"trackingId": tracking_id, "status": issue.status}
                if change.resolves:
                    filters["resolvedAt"] = None

                document = self.mongo_service.update_one(
                    ISSUES_COLLECTION, filters, change.updates, change.unset
                )
                if document is not None:
                    break

                current = self.mongo_service.find_one(ISSUES_COLLECTION, {"trackingId": tracking_id})
                if current is None:
                    span.set_status(Status(StatusCode.ERROR, "Issue disappeared during update"))
                    raise NotFoundException(f"Issue #{tracking_id} not found")
                issue = Issue.from_document(current)
                logger.info(
                    "Issue changed during status update, re-checking",
                    extra={"extra_fields": {"tracking_id": tracking_id, "attempt": attempt, "status": issue.status}}
                )

            if document is None:
                span.set_status(Status(StatusCode.ERROR, "Status update kept conflicting"))
                raise ConflictException(f"Issue #{tracking_id} changed while updating its status, try again")

            updated = Issue.from_document(document)
            logger.info(
                "Issue status changed",
                extra={
                    "extra_fields": {
                        "tracking_id": tracking_id,
                        "from_status": original_status,
                        "to_status": updated.status
                    }
                }
            )

            self._notify(
                updated.contact,
                lifecycle.status_change_message(tracking_id, status),
                event="status_changed",
                tracking_id=tracking_id,
                status=status.value
            )
            return self._with_staff(updated)

    def assign_staff(self, tracking_id: str, staff_id: str) -> Issue:
        """
        Assign an issue to an existing staff member.

        Raises:
            NotFoundException: Unknown tracking ID, or unknown/malformed staff ID
        """
        with tracer.start_as_current_span("issues.assign_staff") as span:
            span.set_attributes({"issue.tracking_id": tracking_id, "staff.id": staff_id})

            self._get_issue(tracking_id)

            staff_document = self.mongo_service.find_by_id(STAFF_COLLECTION, staff_id)
            if staff_document is None:
                span.set_status(Status(StatusCode.ERROR, "Staff member not found"))
                raise NotFoundException(f"Staff member {staff_id} not found")
            staff = self._staff_summary(staff_document)

            document = self.mongo_service.update_one(
                ISSUES_COLLECTION,
                {"trackingId": tracking_id},
                {"assignedStaffId": staff.id, "updatedAt": self.clock()}
            )
            if document is None:
                raise NotFoundException(f"Issue #{tracking_id} not found")

            logger.info(
                "Issue assigned",
                extra={"extra_fields": {"tracking_id": tracking_id, "staff_id": staff.id}}
            )

            updated = Issue.from_document(document)
            updated.assigned_staff = staff
            return updated

    def list_issues(self, status: Any = None, search: Optional[str] = None) -> List[Issue]:
        """
        All issues, newest first, optionally filtered.

        Args:
            status: Only issues currently in this status
            search: Tracking ID substring
        """
        with tracer.start_as_current_span("issues.list_issues") as span:
            filters: Dict[str, Any] = {}
            parsed_status = None
            if status:
                parsed_status = lifecycle.parse_status(status)
                filters["status"] = parsed_status.value

            documents = self.mongo_service.find_many(
                ISSUES_COLLECTION, filters, sort_by="createdAt", sort_order=DESCENDING
            )
            issues = lifecycle.filter_issues(
                [Issue.from_document(doc) for doc in documents],
                lifecycle.IssueFilters(status=parsed_status, search_term=search)
            )

            staff_by_id = {staff.id: staff for staff in self.list_staff()}
            for issue in issues:
                if issue.assigned_staff_id:
                    issue.assigned_staff = staff_by_id.get(issue.assigned_staff_id)

            span.set_attribute("issues.count", len(issues))
            return issues

    def list_staff(self) -> List[StaffSummary]:
        """Staff directory for the assignment dropdown (id, name, department)."""
        documents = self.mongo_service.find_many(STAFF_COLLECTION, {}, sort_by="name", sort_order=ASCENDING)
        return [self._staff_summary(doc) for doc in documents]

    def provision_staff(
        self,
        name: str,
        email: str,
        password: str,
        department: str,
        hasher: PasswordHasher
    ) -> Staff:
        """
        Create a staff account with a hashed password.

        Raises:
            DuplicateKeyException: The email is already registered
            ValueError: Invalid name, email, department or password
        """
        with tracer.start_as_current_span("issues.provision_staff"):
            staff = Staff(
                name=name,
                email=email,
                password_hash=hasher.hash(password),
                department=department
            )
            self.mongo_service.create(STAFF_COLLECTION, staff.to_document())
            logger.info(
                "Staff member provisioned",
                extra={"extra_fields": {"staff_id": staff.id, "department": staff.department}}
            )
            return staff

    def remove_staff(self, staff_id: str) -> int:
        """
        Delete a staff member, unassigning their issues first.

        Returns:
            Number of issues that were unassigned

        Raises:
            NotFoundException: Unknown or malformed staff ID
        """
        with tracer.start_as_current_span("issues.remove_staff") as span:
            span.set_attribute("staff.id", staff_id)

            if self.mongo_service.find_by_id(STAFF_COLLECTION, staff_id) is None:
                raise NotFoundException(f"Staff member {staff_id} not found")

            unassigned = self.mongo_service.update_many(
                ISSUES_COLLECTION,
                {"assignedStaffId": staff_id},
                {"updatedAt": self.clock()},
                unset=["assignedStaffId"]
            )
            self.mongo_service.delete_one(STAFF_COLLECTION, staff_id)

            logger.warning(
                "Staff member removed",
                extra={"extra_fields": {"staff_id": staff_id, "unassigned_issues": unassigned}}
            )
            return unassigned

    # Helpers

    def _get_issue(self, tracking_id: str) -> Issue:
        # Malformed IDs can never match a stored issue
        if not is_valid_tracking_id(tracking_id):
            raise NotFoundException(f"Issue #{tracking_id} not found")
        document = self.mongo_service.find_one(ISSUES_COLLECTION, {"trackingId": tracking_id})
        if document is None:
            raise NotFoundException(f"Issue #{tracking_id} not found")
        return Issue.from_document(document)

    def _with_staff(self, issue: Issue) -> Issue:
        if issue.assigned_staff_id:
            staff_document = self.mongo_service.find_by_id(STAFF_COLLECTION, issue.assigned_staff_id)
            if staff_document is not None:
                issue.assigned_staff = self._staff_summary(staff_document)
        return issue

    @staticmethod
    def _staff_summary(document: Dict[str, Any]) -> StaffSummary:
        # Only the display fields; the stored hash never leaves the store layer
        return StaffSummary(
            id=str(document.get("id") or document.get("_id")),
            name=document.get("name", ""),
            department=document.get("department")
        )

    def _notify(self, contact: str, message: str, **context) -> None:
        try:
            self.notification_gateway.send(contact, message, **context)
        except Exception as e:
            logger.error(
                "Failed to queue notification",
                extra={"extra_fields": {"contact": contact, "error": str(e), **context}},
                exc_info=True
            )
