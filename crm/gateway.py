"""
CRM Gateway HTTP 客户端
所有持久化数据都在 Gateway，本服务只转发请求并转换格式；
调用方的 Bearer token 原样转发给 Gateway
"""
import logging
import time
from typing import Any
from urllib.parse import quote

import requests
from django.conf import settings

from clinic_crm.exceptions import AuthError, BlockError, GatewayError

from .metrics import GATEWAY_LATENCY, GATEWAY_REQUESTS

logger = logging.getLogger(__name__)


def as_record_list(payload: Any) -> list:
    """
    Gateway 的列表接口返回格式不统一，这里统一成 list：
    - None / 空 -> []
    - {"data": [...]} -> 解包
    - 单个对象（有 id）-> [对象]
    - 列表中没有 id 的项丢弃
    """
    if not payload:
        return []
    if isinstance(payload, dict) and "data" in payload and "id" not in payload:
        payload = payload["data"]
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict) and item.get("id")]
    if isinstance(payload, dict):
        if payload.get("id"):
            return [payload]
        if not payload:
            return []
    logger.warning("Unexpected list response from CRM gateway: %r", payload)
    return []


def as_record(payload: Any) -> Any:
    """单条接口：{"data": {...}} 解包，其他原样返回"""
    if isinstance(payload, dict) and "data" in payload and "id" not in payload:
        return payload["data"]
    return payload


def _clean_params(params: dict | None) -> dict | None:
    if not params:
        return None
    return {key: value for key, value in params.items() if value not in (None, "")}


def _path_id(value: Any) -> str:
    return quote(str(value).strip(), safe="")


class CrmGatewayClient:
    """
    一个请求对应一个 client 实例（token 来自当前请求）
    session 可注入，便于测试
    """

    def __init__(self, token: str | None = None, *, base_url: str | None = None,
                 timeout: float | None = None, session: requests.Session | None = None):
        self.token = token
        self.base_url = (base_url or settings.CRM_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.CRM_API_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _body(response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _request(self, method: str, path: str, *, resource: str,
                 params: dict | None = None, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        start = time.perf_counter()
        try:
            response = self.session.request(
                method,
                url,
                params=_clean_params(params),
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            GATEWAY_REQUESTS.labels(resource=resource, method=method, status="error").inc()
            logger.error("CRM gateway %s %s unreachable: %s", method, path, exc)
            raise GatewayError(
                message="CRM gateway is unreachable",
                code="GATEWAY_UNREACHABLE",
                detail={"error": str(exc)},
            ) from exc
        finally:
            GATEWAY_LATENCY.labels(resource=resource).observe(time.perf_counter() - start)

        status = response.status_code
        GATEWAY_REQUESTS.labels(resource=resource, method=method, status=str(status)).inc()
        logger.debug("CRM gateway %s %s -> %s", method, path, status)

        if status == 401:
            raise AuthError(message="CRM gateway rejected the token", code="TOKEN_REJECTED")
        if status == 404:
            raise BlockError(
                message=f"{resource} not found",
                code="NOT_FOUND",
                detail={"path": path},
                http_status=404,
            )
        if status >= 400:
            body = self._body(response)
            logger.warning("CRM gateway %s %s failed with %s: %r", method, path, status, body)
            raise GatewayError(
                message=f"CRM gateway returned {status}",
                code="GATEWAY_HTTP_ERROR",
                detail={"status": status, "body": body},
            )
        return self._body(response)

    # ==================== AUTH ====================

    def login(self, user_name: str, password: str) -> dict:
        return self._request("POST", "/login", resource="auth",
                             json={"user_name": user_name, "password": password})

    def check_auth(self) -> Any:
        return self._request("POST", "/checkAuth", resource="auth")

    # ==================== CUSTOMERS ====================

    def list_customers(self) -> list:
        return as_record_list(self._request("GET", "/customers", resource="customers"))

    def get_customer(self, customer_id) -> Any:
        return as_record(self._request("GET", f"/customers/{_path_id(customer_id)}", resource="customers"))

    def create_customer(self, data: dict) -> Any:
        return as_record(self._request("POST", "/customers", resource="customers", json=data))

    def update_customer(self, customer_id, data: dict) -> Any:
        return as_record(self._request("PUT", f"/customers/{_path_id(customer_id)}",
                                       resource="customers", json=data))

    def delete_customer(self, customer_id) -> Any:
        return self._request("DELETE", f"/customers/{_path_id(customer_id)}", resource="customers")

    # ==================== APPOINTMENTS ====================

    def list_appointments(self, params: dict | None = None) -> list:
        """params: date, status, customer_id, assigned_to"""
        return as_record_list(self._request("GET", "/appointments", resource="appointments", params=params))

    def search_appointments(self, params: dict | None = None) -> list:
        """params: status, customer_id, date (YYYY-MM-DD)"""
        return as_record_list(self._request("GET", "/appointments/search", resource="appointments",
                                            params=params))

    def get_appointment(self, appointment_id) -> Any:
        return as_record(self._request("GET", f"/appointments/{_path_id(appointment_id)}",
                                       resource="appointments"))

    def create_appointment(self, data: dict) -> Any:
        return as_record(self._request("POST", "/appointments", resource="appointments", json=data))

    def update_appointment(self, appointment_id, data: dict) -> Any:
        return as_record(self._request("PUT", f"/appointments/{_path_id(appointment_id)}",
                                       resource="appointments", json=data))

    def delete_appointment(self, appointment_id) -> Any:
        return self._request("DELETE", f"/appointments/{_path_id(appointment_id)}", resource="appointments")

    # ==================== TEMPLATES ====================

    def list_templates(self, org_id: str | None = None, limit: int | None = None) -> list:
        return as_record_list(self._request("GET", "/templates", resource="templates",
                                            params={"org_id": org_id, "limit": limit}))

    def get_template(self, template_id) -> Any:
        return as_record(self._request("GET", f"/templates/{_path_id(template_id)}", resource="templates"))

    def create_template(self, data: dict) -> Any:
        return as_record(self._request("POST", "/templates", resource="templates", json=data))

    def update_template(self, template_id, data: dict) -> Any:
        return as_record(self._request("PUT", f"/templates/{_path_id(template_id)}",
                                       resource="templates", json=data))

    def delete_template(self, template_id) -> Any:
        return self._request("DELETE", f"/templates/{_path_id(template_id)}", resource="templates")

    # ==================== CAMPAIGNS ====================

    def list_campaigns(self, org_id: str | None = None, limit: int | None = None) -> list:
        return as_record_list(self._request("GET", "/campaigns", resource="campaigns",
                                            params={"org_id": org_id, "limit": limit}))

    def get_campaign(self, campaign_id) -> Any:
        return as_record(self._request("GET", f"/campaigns/{_path_id(campaign_id)}", resource="campaigns"))

    def create_campaign(self, data: dict) -> Any:
        return as_record(self._request("POST", "/campaigns", resource="campaigns", json=data))

    def send_campaign(self, campaign_id) -> Any:
        return self._request("POST", f"/campaigns/{_path_id(campaign_id)}/send", resource="campaigns")

    # ==================== TEAMS / REPORTS ====================

    def list_teams(self) -> list:
        return as_record_list(self._request("GET", "/teams", resource="teams"))

    def get_team(self, team_id) -> Any:
        return as_record(self._request("GET", f"/teams/{_path_id(team_id)}", resource="teams"))

    def daily_report(self, date: str | None = None) -> Any:
        return self._request("GET", "/reports/daily", resource="reports", params={"date": date})
