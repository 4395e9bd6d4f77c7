"""
HTTP tests for the complaint API.

Test Coverage:
1. Anonymous submission and public tracking
2. Boundary validation -> 400 envelope
3. Identity gate: missing token, wrong role, expired refresh token
4. Admin triage flow: list, detail, update, delete
5. Dashboard endpoints
6. Unknown routes and health check
7. Security headers and the Bearer challenge on 401s
8. Handlers run off the event loop
"""
import asyncio
import inspect
import time
from datetime import timedelta
from unittest.mock import patch

import httpx
import pytest
from fastapi.routing import APIRoute

from app import config
from app.auth import authenticate, optional_authenticate, sign_token
from app.main import app
from app.models.db_models import AccountRole
from app.services.identity import IdentityService
from conftest import bearer, make_account

API = config.API_PREFIX


SUBMISSION = {
    "name": "Rajesh Kumar",
    "email": "rajesh.kumar@example.com",
    "phoneNumber": "9876543210",
    "pnr": "1234567890",
    "trainNumber": "12345",
    "trainName": "Rajdhani Express",
    "category": "maintenance",
    "description": "Broken berth in coach A1, seat cannot be used.",
    "journeyDate": "2024-11-10T00:00:00Z",
    "station": "New Delhi",
    "coach": "A1",
    "seatNumber": "45",
}


def submit(client, **overrides):
    response = client.post(f"{API}/complaints", json={**SUBMISSION, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def complaint_pk(client, headers, complaint_id):
    response = client.get(f"{API}/admin/complaints", params={"search": complaint_id}, headers=headers)
    return response.json()["data"]["complaints"][0]["id"]


# =============================================================================
# TEST: PUBLIC SURFACE
# =============================================================================

class TestPublicComplaints:

    def test_submit_returns_pending_complaint(self, client):
        data = submit(client)

        assert data["status"] == "pending"
        assert data["category"] == "maintenance"
        assert data["complaintId"].startswith("CMP-")
        assert data["message"] == "Complaint submitted successfully"

    def test_track_new_complaint(self, client):
        complaint_id = submit(client)["complaintId"]

        response = client.get(f"{API}/complaints/track/{complaint_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "pending"
        assert "resolvedAt" not in body["data"]
        assert "resolutionDetails" not in body["data"]
        assert "email" not in body["data"]

    def test_track_unknown_number(self, client):
        response = client.get(f"{API}/complaints/track/CMP-1999-0001")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Complaint not found",
            "statusCode": 404,
        }

    def test_track_malformed_number(self, client):
        response = client.get(f"{API}/complaints/track/12345")
        assert response.status_code == 400

    @pytest.mark.parametrize("overrides", [
        {"phoneNumber": "12345"},
        {"pnr": "12AB"},
        {"description": "too short"},
        {"category": "weather"},
        {"email": "not-an-email"},
        {"name": "X"},
    ])
    def test_submission_validation(self, client, overrides):
        response = client.post(f"{API}/complaints", json={**SUBMISSION, **overrides})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["errors"]

    def test_authenticated_submission_links_account(self, client, db, rider_account, admin_account):
        response = client.post(f"{API}/complaints", json=SUBMISSION, headers=bearer(rider_account))
        complaint_id = response.json()["data"]["complaintId"]

        pk = complaint_pk(client, bearer(admin_account), complaint_id)
        detail = client.get(f"{API}/admin/complaints/{pk}", headers=bearer(admin_account)).json()["data"]

        assert detail["userId"]["id"] == rider_account.id

    def test_bad_token_on_submission_is_anonymous(self, client):
        response = client.post(
            f"{API}/complaints", json=SUBMISSION, headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 201


# =============================================================================
# TEST: AUTH ENDPOINTS
# =============================================================================

class TestAuthEndpoints:

    def test_login_and_me(self, client, admin_account):
        response = client.post(f"{API}/auth/login", json={"email": "admin@railmadad.com", "password": "Admin@123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["role"] == "admin"

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
        assert me.json()["data"]["email"] == "admin@railmadad.com"
        assert me.json()["data"]["lastLogin"] is not None

    def test_login_inactive(self, client, db):
        make_account(db, email="former@railmadad.com", is_active=False)

        response = client.post(f"{API}/auth/login", json={"email": "former@railmadad.com", "password": "Admin@123"})

        assert response.status_code == 401
        assert response.json()["message"] == "Account is inactive. Please contact administrator."

    def test_refresh_rotates_pair(self, client, admin_account):
        login = client.post(
            f"{API}/auth/login", json={"email": "admin@railmadad.com", "password": "Admin@123"}
        ).json()["data"]

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": login["refreshToken"]})

        assert response.status_code == 200
        assert set(response.json()["data"]) == {"accessToken", "refreshToken"}

    def test_expired_refresh_token(self, client, admin_account):
        token = sign_token(
            {"sub": admin_account.id, "email": admin_account.email, "role": "admin", "type": "refresh"},
            config.JWT_REFRESH_SECRET_KEY,
            timedelta(seconds=-30),
        )

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": token})

        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token expired"

    def test_invalid_refresh_token(self, client):
        response = client.post(f"{API}/auth/refresh", json={"refreshToken": "garbage"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token"

    def test_logout(self, client, admin_account):
        response = client.post(f"{API}/auth/logout", headers=bearer(admin_account))
        assert response.json()["data"] == {"message": "Logged out successfully"}


# =============================================================================
# TEST: ADMIN COMPLAINTS
# =============================================================================

class TestAdminComplaints:

    def test_list_without_token(self, client):
        response = client.get(f"{API}/admin/complaints")

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_list_as_user_is_forbidden(self, client, rider_account):
        response = client.get(f"{API}/admin/complaints", headers=bearer(rider_account))

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to perform this action"

    def test_deactivated_admin_token_is_refused(self, client, db, admin_account):
        headers = bearer(admin_account)
        admin_account.is_active = False
        db.commit()

        response = client.get(f"{API}/admin/complaints", headers=headers)

        assert response.status_code == 401

    def test_limit_above_maximum(self, client, admin_account):
        response = client.get(f"{API}/admin/complaints", params={"limit": 5000}, headers=bearer(admin_account))
        assert response.status_code == 400

    def test_unknown_sort_field(self, client, admin_account):
        response = client.get(f"{API}/admin/complaints", params={"sortBy": "email"}, headers=bearer(admin_account))
        assert response.status_code == 400

    def test_list_filters_and_pagination(self, client, admin_account):
        for _ in range(3):
            submit(client)
        submit(client, category="cleanliness")

        response = client.get(
            f"{API}/admin/complaints",
            params={"category": "maintenance", "limit": 2},
            headers=bearer(admin_account),
        )

        data = response.json()["data"]
        assert len(data["complaints"]) == 2
        assert data["pagination"]["totalItems"] == 3
        assert data["pagination"]["totalPages"] == 2
        assert data["pagination"]["hasNextPage"] is True

    def test_resolve_flow(self, client, admin_account):
        headers = bearer(admin_account)
        complaint_id = submit(client)["complaintId"]
        pk = complaint_pk(client, headers, complaint_id)

        response = client.patch(
            f"{API}/admin/complaints/{pk}",
            json={"status": "resolved", "comment": "Fixed berth", "resolutionDetails": "Berth replaced"},
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Complaint updated successfully"
        assert body["data"]["status"] == "resolved"
        assert body["data"]["resolvedAt"] is not None
        assert body["data"]["resolvedBy"]["id"] == admin_account.id
        assert len(body["data"]["statusUpdates"]) == 1
        assert body["data"]["statusUpdates"][0]["comment"] == "Fixed berth"

        tracked = client.get(f"{API}/complaints/track/{complaint_id}").json()["data"]
        assert tracked["status"] == "resolved"
        assert tracked["resolutionDetails"] == "Berth replaced"
        assert "updatedBy" not in tracked["statusUpdates"][0]

    def test_priority_update_keeps_history(self, client, admin_account):
        headers = bearer(admin_account)
        pk = complaint_pk(client, headers, submit(client)["complaintId"])

        response = client.patch(f"{API}/admin/complaints/{pk}", json={"priority": "urgent"}, headers=headers)

        assert response.json()["data"]["priority"] == "urgent"
        assert response.json()["data"]["statusUpdates"] == []

    def test_update_invalid_status(self, client, admin_account):
        headers = bearer(admin_account)
        pk = complaint_pk(client, headers, submit(client)["complaintId"])

        response = client.patch(f"{API}/admin/complaints/{pk}", json={"status": "archived"}, headers=headers)

        assert response.status_code == 400

    def test_update_unknown_assignee(self, client, admin_account):
        headers = bearer(admin_account)
        pk = complaint_pk(client, headers, submit(client)["complaintId"])

        response = client.patch(
            f"{API}/admin/complaints/{pk}",
            json={"assignedTo": "00000000-0000-0000-0000-000000000000"},
            headers=headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Assignee not found"

    def test_detail_of_missing_complaint(self, client, admin_account):
        response = client.get(
            f"{API}/admin/complaints/00000000-0000-0000-0000-000000000000",
            headers=bearer(admin_account),
        )
        assert response.status_code == 404

    def test_delete(self, client, admin_account):
        headers = bearer(admin_account)
        complaint_id = submit(client)["complaintId"]
        pk = complaint_pk(client, headers, complaint_id)

        response = client.delete(f"{API}/admin/complaints/{pk}", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"complaintId": complaint_id}
        assert client.get(f"{API}/complaints/track/{complaint_id}").status_code == 404


# =============================================================================
# TEST: DASHBOARD
# =============================================================================

class TestDashboard:

    def test_metrics(self, client, admin_account):
        headers = bearer(admin_account)
        pk = complaint_pk(client, headers, submit(client)["complaintId"])
        submit(client)
        client.patch(f"{API}/admin/complaints/{pk}", json={"status": "resolved"}, headers=headers)

        data = client.get(f"{API}/admin/dashboard/metrics", headers=headers).json()["data"]

        assert data["totalComplaints"] == 2
        assert data["resolvedComplaints"] == 1
        assert data["pendingComplaints"] == 1
        assert data["resolutionRate"] == 50.0
        assert data["complaintsThisWeek"] == 2

    def test_charts(self, client, admin_account):
        submit(client)

        data = client.get(f"{API}/admin/dashboard/charts", headers=bearer(admin_account)).json()["data"]

        assert data["complaintsByCategory"] == [{"label": "maintenance", "value": 1}]
        assert len(data["complaintsOverTime"]) == 1

    def test_charts_require_admin(self, client, db):
        user = make_account(db, email="someone@example.com", role=AccountRole.USER)
        response = client.get(f"{API}/admin/dashboard/charts", headers=bearer(user))
        assert response.status_code == 403


# =============================================================================
# TEST: MISC
# =============================================================================

class TestMisc:

    def test_unknown_route(self, client):
        response = client.get(f"{API}/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": f"Route {API}/does-not-exist not found",
            "statusCode": 404,
        }

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"]["environment"] == config.APP_ENV

    def test_security_headers_on_success(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert "max-age=" in response.headers["Strict-Transport-Security"]

    def test_security_headers_on_errors(self, client):
        response = client.get(f"{API}/does-not-exist")

        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_expired_token_carries_bearer_challenge(self, client, admin_account):
        token = sign_token(
            {"sub": admin_account.id, "email": admin_account.email, "role": "admin", "type": "access"},
            config.JWT_SECRET_KEY,
            timedelta(seconds=-30),
        )

        response = client.get(f"{API}/admin/complaints", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token expired"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_forbidden_has_no_bearer_challenge(self, client, rider_account):
        response = client.get(f"{API}/admin/complaints", headers=bearer(rider_account))

        assert response.status_code == 403
        assert "WWW-Authenticate" not in response.headers


# =============================================================================
# TEST: THREADPOOL EXECUTION
# =============================================================================

class TestBlockingWork:

    def test_api_handlers_and_auth_dependencies_are_sync(self):
        """Sync handlers are run in FastAPI's threadpool, not on the event loop."""
        api_routes = [
            route for route in app.routes
            if isinstance(route, APIRoute) and route.path.startswith(API)
        ]

        assert api_routes
        for route in api_routes:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path
        assert not inspect.iscoroutinefunction(authenticate)
        assert not inspect.iscoroutinefunction(optional_authenticate)

    def test_concurrent_logins_overlap(self, client):
        delay = 0.5

        def slow_login(email, password):
            time.sleep(delay)
            return {"user": {"email": email}, "accessToken": "a", "refreshToken": "r"}

        async def login_four_times():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
                payload = {"email": "admin@railmadad.com", "password": "Admin@123"}
                return await asyncio.gather(*[
                    http.post(f"{API}/auth/login", json=payload) for _ in range(4)
                ])

        with patch.object(IdentityService, "login", side_effect=slow_login):
            started = time.perf_counter()
            responses = asyncio.run(login_four_times())
            elapsed = time.perf_counter() - started

        assert [r.status_code for r in responses] == [200] * 4
        # Serialised on the event loop this would take 4 * delay
        assert elapsed < 3 * delay
