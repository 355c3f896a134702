# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
API endpoint tests using the Flask test client.
"""

import pytest
from datetime import datetime, timedelta


def submit(client, report):
    response = client.post('/api/report', json=report)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["trackingId"]


class TestReportEndpoints:
    """Test citizen intake and tracking."""

    def test_submit_report(self, client, gateway, sample_report):
        response = client.post('/api/report', json=sample_report)

        assert response.status_code == 201
        data = response.get_json()
        assert data["message"] == "Issue reported successfully!"
        assert len(data["trackingId"]) == 6
        assert data["_links"]["track"]["href"] == f"http://testserver/api/track_status/{data['trackingId']}"
        assert gateway.sent[0]["event"] == "created"

    def test_submit_report_as_form(self, client):
        response = client.post('/api/report', data={
            "issueType": "Streetlight Outage",
            "latitude": "12.9716",
            "longitude": "77.5946",
            "description": "Light out on the corner",
            "citizenContact": "resident@example.com"
        })

        assert response.status_code == 201
        tracking_id = response.get_json()["trackingId"]

        issue = client.get(f'/api/track_status/{tracking_id}').get_json()
        assert issue["department"] == "Electrical"
        assert issue["location"]["coordinates"] == [77.5946, 12.9716]

    def test_missing_fields_problem_document(self, client, gateway):
        response = client.post('/api/report', json={"category": "Pothole"})

        assert response.status_code == 400
        problem = response.get_json()
        assert problem["type"] == "http://testserver/problems/validation-error"
        assert problem["detail"] == "Missing required fields. Please fill out all parts of the form."
        assert problem["instance"] == "/api/report"
        fields = {error["field"] for error in problem["errors"]}
        assert {"latitude", "longitude", "description", "contact"} <= fields
        assert gateway.sent == []

    def test_invalid_category(self, client, sample_report):
        sample_report["category"] = "Alien Landing"
        response = client.post('/api/report', json=sample_report)

        assert response.status_code == 400
        assert response.get_json()["detail"] == "Report contains invalid values"

    def test_track_status(self, client, sample_report):
        tracking_id = submit(client, sample_report)

        response = client.get(f'/api/track_status/{tracking_id}')

        assert response.status_code == 200
        issue = response.get_json()
        assert issue["trackingId"] == tracking_id
        assert issue["status"] == "Pending"
        assert issue["resolvedAt"] is None
        assert issue["assignedStaff"] is None
        assert "update_status" in issue["_links"]

    def test_track_unknown_issue(self, client):
        response = client.get('/api/track_status/000000')

        assert response.status_code == 404
        problem = response.get_json()
        assert problem["title"] == "Resource Not Found"
        assert problem["_links"]["report"]["href"] == "http://testserver/api/report"

    def test_store_outage_is_503(self, client, store, sample_report):
        store.unavailable = True

        response = client.post('/api/report', json=sample_report)

        assert response.status_code == 503
        assert response.get_json()["type"].endswith("/service-unavailable")


class TestIssueEndpoints:
    """Test staff issue management."""

    def test_list_issues(self, client, sample_report):
        first = submit(client, sample_report)
        second = submit(client, dict(sample_report, category="Garbage Overflow"))

        response = client.get('/api/issues')

        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 2
        assert {item["trackingId"] for item in data["_embedded"]["items"]} == {first, second}

    def test_list_issues_filtered(self, client, sample_report):
        first = submit(client, sample_report)
        submit(client, sample_report)
        client.post('/api/update_status', json={"trackingId": first, "status": "Acknowledged"})

        data = client.get('/api/issues?status=Acknowledged').get_json()

        assert [item["trackingId"] for item in data["_embedded"]["items"]] == [first]
        assert data["_links"]["self"]["href"] == "http://testserver/api/issues?status=Acknowledged"

    def test_list_issues_search(self, client, sample_report):
        first = submit(client, sample_report)

        data = client.get(f'/api/issues?search={first[:3]}').get_json()

        assert first in [item["trackingId"] for item in data["_embedded"]["items"]]

    def test_list_issues_rejects_unknown_status(self, client):
        response = client.get('/api/issues?status=Closed')

        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == "status"

    def test_update_status(self, client, gateway, sample_report):
        tracking_id = submit(client, sample_report)

        response = client.post('/api/update_status', json={"trackingId": tracking_id, "status": "Resolved"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "Status updated successfully!"
        assert data["issue"]["status"] == "Resolved"
        assert data["issue"]["resolvedAt"] is not None
        assert "update_status" not in data["issue"]["_links"]
        assert gateway.sent[-1]["message"] == (
            f'Update for issue #{tracking_id}: The status has been changed to "Resolved".'
        )

    def test_update_status_legacy_field_names(self, client, sample_report):
        tracking_id = submit(client, sample_report)

        response = client.post('/api/update_status', json={"issueId": tracking_id, "status": "In Progress"})

        assert response.status_code == 200
        assert response.get_json()["issue"]["status"] == "In Progress"

    def test_backwards_transition_rejected(self, client, sample_report):
        tracking_id = submit(client, sample_report)
        client.post('/api/update_status', json={"trackingId": tracking_id, "status": "Resolved"})

        response = client.post('/api/update_status', json={"trackingId": tracking_id, "status": "Pending"})

        assert response.status_code == 400

    def test_update_status_unknown_issue(self, client):
        response = client.post('/api/update_status', json={"trackingId": "000000", "status": "Resolved"})

        assert response.status_code == 404

    def test_update_status_missing_fields(self, client):
        response = client.post('/api/update_status', json={"status": "Resolved"})

        assert response.status_code == 400
        assert response.get_json()["detail"] == "Request validation failed for UpdateStatusRequest"

    def test_assign_issue(self, client, staff_member, sample_report):
        tracking_id = submit(client, sample_report)

        response = client.post('/api/assign_issue', json={"trackingId": tracking_id, "staffId": staff_member.id})

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "Issue assigned successfully!"
        assert data["issue"]["assignedStaffId"] == staff_member.id
        assert data["issue"]["assignedStaff"] == {
            "id": staff_member.id, "name": "Ana Silva", "department": "Public Works"
        }

    def test_assign_unknown_staff(self, client, sample_report):
        tracking_id = submit(client, sample_report)

        response = client.post('/api/assign_issue', json={"trackingId": tracking_id, "userId": "nobody"})

        assert response.status_code == 404


class TestStaffAndAnalyticsEndpoints:
    """Test the staff directory, analytics and health endpoints."""

    def test_list_users(self, client, staff_member):
        response = client.get('/api/users')

        assert response.status_code == 200
        items = response.get_json()["_embedded"]["items"]
        assert items == [{"id": staff_member.id, "name": "Ana Silva", "department": "Public Works"}]

    def test_analytics_rounds_average(self, client, store):
        created = datetime(2024, 5, 1, 9, 0, 0)
        store.insert_raw("issues", {
            "status": "Resolved", "category": "Pothole",
            "createdAt": created, "resolvedAt": created + timedelta(hours=1)
        })
        store.insert_raw("issues", {
            "status": "Resolved", "category": "Pothole",
            "createdAt": created, "resolvedAt": created + timedelta(hours=2, minutes=20)
        })
        store.insert_raw("issues", {"status": "Pending", "category": "Water Leakage", "createdAt": created})

        response = client.get('/api/analytics')

        assert response.status_code == 200
        data = response.get_json()
        assert data["avgResolutionTimeHours"] == 1.7
        assert data["resolvedIssues"] == 2
        assert data["totalIssues"] == 3
        assert data["trendData"] == [
            {"category": "Pothole", "count": 2},
            {"category": "Water Leakage", "count": 1}
        ]
        assert data["_links"]["self"]["href"] == "http://testserver/api/analytics"

    def test_analytics_empty(self, client):
        data = client.get('/api/analytics').get_json()

        assert data["avgResolutionTimeHours"] == 0.0
        assert data["totalIssues"] == 0

    def test_health(self, client):
        response = client.get('/api/healthz')

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["mongodb"]["status"] == "healthy"
        assert data["dependencies"]["notifier"]["backend"] == "recording"
        assert data["feature_flags"]["enforce_status_order"] is True

    def test_health_unhealthy_store(self, client, store):
        store.unavailable = True

        response = client.get('/api/healthz')

        assert response.status_code == 503
        assert response.get_json()["status"] == "unhealthy"

    def test_unknown_route(self, client):
        response = client.get('/api/nope')

        assert response.status_code == 404
        assert response.get_json()["status"] == 404


class TestCORS:
    """Test cross-origin handling."""

    def test_allowed_origin(self, client):
        response = client.get('/api/analytics', headers={"Origin": "http://portal.test"})

        assert response.headers["Access-Control-Allow-Origin"] == "http://portal.test"
        assert response.headers["Vary"] == "Origin"

    def test_preflight(self, client):
        response = client.options('/api/report', headers={
            "Origin": "http://portal.test",
            "Access-Control-Request-Method": "POST"
        })

        assert response.status_code == 204
        assert "POST" in response.headers["Access-Control-Allow-Methods"]

    def test_preflight_from_unknown_origin(self, client):
        response = client.options('/api/report', headers={"Origin": "http://evil.test"})

        assert response.status_code == 403
        assert "Access-Control-Allow-Origin" not in response.headers

    @pytest.mark.parametrize("origin,allowed", [
        ("http://portal.test", True),
        ("https://staff.city.gov", True),
        ("http://evil.test", False),
        (None, False),
    ])
    def test_origin_matching(self, origin, allowed):
        from civic_api.middleware.cors import origin_allowed

        assert origin_allowed(origin, ["http://portal.test", "https://staff.city.*"]) is allowed


class TestOpenAPIDocument:
    """Test the generated API description."""

    def test_app_level_tags_published(self, app):
        tag_names = {tag["name"] for tag in app.api_doc["tags"]}

        assert {"Reports", "Issues", "Staff", "Analytics", "Health"} <= tag_names
