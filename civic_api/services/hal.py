# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Adds ``_links`` affordances to issue resources and builds RFC 7807 problem documents.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin, urlencode

from ..models.enums import IssueStatus
from ..models.responses import HalLink


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url + '/', path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")

    def build_action_link(self, action_path: str, title: str, method: str = "POST") -> HalLink:
        """Build a JSON action link."""
        return self.build_link(action_path, method=method, content_type="application/json", title=title)


class AffordanceLinkBuilder:
    """Builder for state-dependent affordance links."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_issue_affordances(self, tracking_id: str, status: str) -> Dict[str, HalLink]:
        """Links for an issue; status changes are offered until it is Resolved."""
        links = {
            'self': self.link_builder.build_self_link(f"/api/track_status/{tracking_id}"),
            'collection': self.link_builder.build_collection_link("/api/issues")
        }

        if status != IssueStatus.RESOLVED.value:
            links['update_status'] = self.link_builder.build_action_link(
                "/api/update_status", title="Update status"
            )

        links['assign'] = self.link_builder.build_action_link("/api/assign_issue", title="Assign staff")
        links['staff'] = self.link_builder.build_link("/api/users", title="Assignable staff")
        return links


class HalResponseBuilder:
    """Main HAL response builder."""

    def __init__(self, base_url: str, problem_base_url: Optional[str] = None):
        self.base_url = base_url.rstrip('/')
        self.problem_base_url = (problem_base_url or f"{self.base_url}/problems").rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    @staticmethod
    def _dump_links(links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}

    def build_resource_response(
        self,
        data: Dict[str, Any],
        links: Dict[str, HalLink]
    ) -> Dict[str, Any]:
        """Attach ``_links`` to a resource body."""
        response = dict(data)
        response['_links'] = self._dump_links(links)
        return response

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        collection_path: str,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build an unpaginated HAL collection."""
        params = {key: value for key, value in (query_params or {}).items() if value}
        self_path = f"{collection_path}?{urlencode(params)}" if params else collection_path

        return {
            'total': len(items),
            '_links': self._dump_links({'self': self.link_builder.build_link(self_path, title="Current view")}),
            '_embedded': {
                'items': items
            }
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{self.problem_base_url}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(f"/docs/errors#{error_type}", title="Error documentation")
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link("/openapi/openapi.json", title="API schema")
        elif error_type == "resource-not-found" and instance.startswith("/api/track_status"):
            links['report'] = self.link_builder.build_action_link("/api/report", title="Report an issue")

        error_response['_links'] = self._dump_links(links)
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str, problem_base_url: Optional[str] = None):
        self.builder = HalResponseBuilder(base_url, problem_base_url)

    def format_issue(self, issue: Dict[str, Any]) -> Dict[str, Any]:
        """Format an issue (public dict form) with HAL links."""
        links = self.builder.affordance_builder.build_issue_affordances(
            issue['trackingId'], issue.get('status', '')
        )
        return self.builder.build_resource_response(issue, links)

    def format_issue_collection(
        self,
        issues: List[Dict[str, Any]],
        filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a list of issues with HAL links on each item."""
        return self.builder.build_collection_response(
            [self.format_issue(issue) for issue in issues],
            "/api/issues",
            filters
        )

    def format_report_receipt(self, message: str, tracking_id: str) -> Dict[str, Any]:
        """Body returned to the citizen after a successful report."""
        links = {
            'track': self.builder.link_builder.build_link(
                f"/api/track_status/{tracking_id}", title="Track this issue"
            )
        }
        return self.builder.build_resource_response(
            {'message': message, 'trackingId': tracking_id}, links
        )

    def format_staff_collection(self, staff: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Format the staff directory."""
        return self.builder.build_collection_response(staff, "/api/users")

    def format_analytics(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Format the analytics summary with HAL links."""
        link_builder = self.builder.link_builder
        links = {
            'self': link_builder.build_self_link("/api/analytics"),
            'issues': link_builder.build_link("/api/issues", title="All issues")
        }
        return self.builder.build_resource_response(summary, links)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )

    def format_not_found_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance
        )

    def format_conflict_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a conflict error response."""
        return self.builder.build_error_response(
            "resource-conflict",
            "Resource Conflict",
            409,
            detail,
            instance
        )

    def format_service_unavailable_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "service-unavailable",
            "Service Unavailable",
            503,
            detail,
            instance
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


# Convenience function for creating HAL formatter
def create_hal_formatter(base_url: str, problem_base_url: Optional[str] = None) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url, problem_base_url)
