"""
API tests: django test Client, CRM gateway client patched.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
from django.test import Client

from clinic_crm.exceptions import AuthError, GatewayError


@pytest.fixture
def gateway():
    client = MagicMock()
    client.list_customers.return_value = []
    client.list_teams.return_value = []
    client.list_appointments.return_value = []
    client.list_campaigns.return_value = []
    with patch("crm.views.CrmGatewayClient", return_value=client) as factory:
        client.factory = factory
        yield client


@pytest.fixture
def api():
    return Client()


class TestAuthAndMethods:

    def test_health_needs_no_token(self, api):
        resp = api.get("/api/health/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_missing_token_is_401(self, api, gateway):
        resp = api.get("/api/patients/")
        assert resp.status_code == 401
        data = resp.json()
        assert data["success"] is False
        assert data["type"] == "auth"
        gateway.list_customers.assert_not_called()

    def test_token_is_forwarded(self, api, gateway, auth_headers):
        api.get("/api/patients/", **auth_headers)
        gateway.factory.assert_called_once_with("test-token")

    def test_method_not_allowed(self, api, gateway, auth_headers):
        resp = api.delete("/api/patients/", **auth_headers)
        assert resp.status_code == 405
        data = resp.json()
        assert data["type"] == "block"
        assert data["code"] == "METHOD_NOT_ALLOWED"

    def test_dashboard_rejects_post(self, api, gateway, auth_headers):
        resp = api.post("/api/dashboard/stats/", **auth_headers)
        assert resp.status_code == 405
        assert resp.json()["code"] == "METHOD_NOT_ALLOWED"

    def test_method_checked_before_token(self, api, gateway):
        resp = api.delete("/api/patients/")
        assert resp.status_code == 405
        assert resp.json()["code"] == "METHOD_NOT_ALLOWED"
        gateway.factory.assert_not_called()

    def test_health_rejects_post_with_json(self, api):
        resp = api.post("/api/health/")
        assert resp.status_code == 405
        assert resp.json()["code"] == "METHOD_NOT_ALLOWED"

    def test_metrics_endpoint(self, api):
        resp = api.get("/metrics")
        assert resp.status_code == 200
        assert b"http_5xx_total" in resp.content


class TestPatientsApi:

    def test_list(self, api, gateway, auth_headers, sample_customer):
        gateway.list_customers.return_value = [sample_customer]
        resp = api.get("/api/patients/?status=follow-up", **auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["data"][0]["name"] == "John Doe"
        assert data["data"][0]["medicalNotes"] == "penicillin allergy"

    def test_create(self, api, gateway, auth_headers, sample_customer):
        gateway.create_customer.return_value = sample_customer
        payload = {
            "name": "John Doe",
            "phone": "9876543210",
            "email": "john@example.com",
            "age": 42,
            "gender": "M",
        }
        resp = api.post("/api/patients/", data=json.dumps(payload), content_type="application/json",
                        **auth_headers)
        assert resp.status_code == 201
        request = gateway.create_customer.call_args.args[0]
        assert request["phone"] == "919876543210"
        assert request["gender"] == "Male"

    def test_create_invalid_json(self, api, gateway, auth_headers):
        resp = api.post("/api/patients/", data="not json", content_type="application/json", **auth_headers)
        assert resp.status_code == 400
        data = resp.json()
        assert data["type"] == "validation"
        assert data["code"] == "INVALID_JSON"

    def test_create_validation_errors(self, api, gateway, auth_headers):
        resp = api.post("/api/patients/", data=json.dumps({"name": "J"}), content_type="application/json",
                        **auth_headers)
        assert resp.status_code == 400
        fields = {e["field"] for e in resp.json()["detail"]["errors"]}
        assert fields == {"name", "phone", "email", "age"}
        gateway.create_customer.assert_not_called()

    def test_detail_not_found(self, api, gateway, auth_headers):
        from clinic_crm.exceptions import BlockError

        gateway.get_customer.side_effect = BlockError(message="customers not found", code="NOT_FOUND",
                                                      http_status=404)
        resp = api.get("/api/patients/missing/", **auth_headers)
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_delete(self, api, gateway, auth_headers):
        resp = api.delete("/api/patients/cust-1/", **auth_headers)
        assert resp.status_code == 200
        gateway.delete_customer.assert_called_once_with("cust-1")


class TestAppointmentsApi:

    def test_create_requires_patient(self, api, gateway, auth_headers):
        resp = api.post("/api/appointments/", data=json.dumps({"date": "2024-03-10"}),
                        content_type="application/json", **auth_headers)
        assert resp.status_code == 400
        assert resp.json()["detail"]["errors"][0]["field"] == "patient"

    def test_create(self, api, gateway, auth_headers, sample_appointment):
        gateway.create_appointment.return_value = sample_appointment
        payload = {"patient": "cust-1", "date": "2024-03-10", "time": "14:30", "doctor": "doc-1"}
        resp = api.post("/api/appointments/", data=json.dumps(payload), content_type="application/json",
                        **auth_headers)
        assert resp.status_code == 201
        request = gateway.create_appointment.call_args.args[0]
        assert request["scheduled_at"] == "2024-03-10T14:30:00.000Z"
        assert resp.json()["data"]["time"] == "14:30"

    def test_list_passes_filters(self, api, gateway, auth_headers):
        resp = api.get("/api/appointments/?date=2024-03-10&patient_id=cust-1", **auth_headers)
        assert resp.status_code == 200
        params = gateway.list_appointments.call_args.args[0]
        assert params["date"] == "2024-03-10"
        assert params["customer_id"] == "cust-1"

    def test_gateway_down_is_502(self, api, gateway, auth_headers):
        gateway.list_appointments.side_effect = GatewayError(code="GATEWAY_UNREACHABLE")
        resp = api.get("/api/appointments/", **auth_headers)
        assert resp.status_code == 502
        assert resp.json()["type"] == "gateway"

    def test_rejected_token_is_401(self, api, gateway, auth_headers):
        gateway.list_appointments.side_effect = AuthError(code="TOKEN_REJECTED")
        resp = api.get("/api/appointments/", **auth_headers)
        assert resp.status_code == 401
        assert resp.json()["code"] == "TOKEN_REJECTED"


class TestDashboardTemplatesCampaigns:

    def test_dashboard_endpoints(self, api, gateway, auth_headers):
        for path in ("/api/dashboard/stats/", "/api/dashboard/activity/",
                     "/api/dashboard/today-appointments/", "/api/team/"):
            resp = api.get(path, **auth_headers)
            assert resp.status_code == 200, path
            assert resp.json()["success"] is True

    def test_create_template(self, api, gateway, auth_headers):
        gateway.create_template.return_value = {"id": "t1", "name": "Hi", "content": ["Hello"]}
        resp = api.post("/api/templates/", data=json.dumps({"name": "Hi", "content": ["Hello"]}),
                        content_type="application/json", **auth_headers)
        assert resp.status_code == 201
        assert resp.json()["data"]["content"] == ["Hello"]

    def test_template_detail_get_not_allowed(self, api, gateway, auth_headers):
        resp = api.get("/api/templates/t1/", **auth_headers)
        assert resp.status_code == 405

    def test_create_campaign_validation(self, api, gateway, auth_headers):
        resp = api.post("/api/campaigns/", data=json.dumps({"title": "T"}), content_type="application/json",
                        **auth_headers)
        assert resp.status_code == 400

    def test_send_campaign_is_queued(self, api, auth_headers):
        with patch("crm.tasks.send_campaign_task") as mock_task:
            resp = api.post("/api/campaigns/cmp-1/send/", **auth_headers)
        assert resp.status_code == 202
        mock_task.delay.assert_called_once_with("cmp-1", "test-token")

    def test_send_campaign_requires_token(self, api):
        resp = api.post("/api/campaigns/cmp-1/send/")
        assert resp.status_code == 401


class TestAuthEndpoints:

    def test_login(self, api, gateway):
        gateway.login.return_value = {"access_token": "tok-1", "expires_at": "2024-03-11T00:00:00Z", "role": "admin"}
        resp = api.post("/api/auth/login/", data=json.dumps({"user_name": "admin", "password": "pw"}),
                        content_type="application/json")
        assert resp.status_code == 200
        assert resp.json()["data"]["access_token"] == "tok-1"
        gateway.login.assert_called_once_with("admin", "pw")
        gateway.factory.assert_called_once_with()

    def test_login_requires_credentials(self, api, gateway):
        resp = api.post("/api/auth/login/", data=json.dumps({"user_name": "admin"}),
                        content_type="application/json")
        assert resp.status_code == 400
        assert resp.json()["detail"]["errors"][0]["field"] == "password"
        gateway.login.assert_not_called()

    def test_login_bad_credentials(self, api, gateway):
        gateway.login.side_effect = AuthError(code="TOKEN_REJECTED")
        resp = api.post("/api/auth/login/", data=json.dumps({"username": "admin", "password": "x"}),
                        content_type="application/json")
        assert resp.status_code == 401

    def test_check_auth(self, api, gateway, auth_headers):
        gateway.check_auth.return_value = "token is valid"
        resp = api.post("/api/auth/check/", **auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"valid": True, "message": "token is valid"}

    def test_check_auth_without_token(self, api, gateway):
        resp = api.post("/api/auth/check/")
        assert resp.status_code == 401
        gateway.check_auth.assert_not_called()


class TestDetailAndReportEndpoints:

    def test_campaign_detail(self, api, gateway, auth_headers):
        gateway.get_campaign.return_value = {"id": "cmp-1", "name": "Spring", "message": "Hi", "status": "sent"}
        resp = api.get("/api/campaigns/cmp-1/", **auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "sent"
        gateway.get_campaign.assert_called_once_with("cmp-1")

    def test_team_member(self, api, gateway, auth_headers, sample_team_member):
        gateway.get_team.return_value = sample_team_member
        resp = api.get(f"/api/team/{sample_team_member['id']}/", **auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Sarah Smith"

    def test_search_appointments_is_not_a_detail_lookup(self, api, gateway, auth_headers, sample_appointment):
        gateway.search_appointments.return_value = [sample_appointment]
        resp = api.get("/api/appointments/search/?status=confirmed&date=2024-03-10", **auth_headers)
        assert resp.status_code == 200
        assert resp.json()["count"] == 1
        params = gateway.search_appointments.call_args.args[0]
        assert params["status"] == "Confirmed"
        assert params["date"] == "2024-03-10"
        gateway.get_appointment.assert_not_called()

    def test_daily_report(self, api, gateway, auth_headers):
        gateway.daily_report.return_value = {"date": "2024-03-10", "appointments": 4}
        resp = api.get("/api/reports/daily/?date=2024-03-10", **auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["appointments"] == 4
        gateway.daily_report.assert_called_once_with("2024-03-10")

    def test_daily_report_bad_date(self, api, gateway, auth_headers):
        resp = api.get("/api/reports/daily/?date=2024-13-45", **auth_headers)
        assert resp.status_code == 400
        gateway.daily_report.assert_not_called()
