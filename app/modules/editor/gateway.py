"""
Report persistence gateway.

The editor only talks to storage through this interface. HttpReportGateway
is the production implementation against the reports API; every call is
async and may fail with GatewayError (the request was rejected) or
GatewayUnavailableError (the API could not be reached at all).
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.core.config import config, is_valid_url
from app.modules.reports.totals import ReportRow

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The backend rejected or failed a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GatewayUnavailableError(GatewayError):
    """The backend is unreachable or not configured."""


@dataclass(frozen=True)
class ReportGroupInfo:
    id: int
    name: str
    report_date: date

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ReportGroupInfo":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            report_date=date.fromisoformat(str(data["report_date"])[:10]),
        )


class ReportGateway:
    """Interface consumed by the editor session."""

    @property
    def is_configured(self) -> bool:
        return True

    async def ping(self) -> None:
        """Raise GatewayUnavailableError when the backend cannot be reached."""
        return None

    async def list_groups(self) -> List[ReportGroupInfo]:
        raise NotImplementedError

    async def create_group(self, name: str, report_date: date) -> ReportGroupInfo:
        raise NotImplementedError

    async def update_group(self, group_id: int, name: str, report_date: date) -> ReportGroupInfo:
        raise NotImplementedError

    async def delete_group(self, group_id: int) -> None:
        raise NotImplementedError

    async def list_rows(self, group_id: int) -> List[ReportRow]:
        raise NotImplementedError

    async def upsert_rows(self, group_id: int, rows: Sequence[ReportRow]) -> List[ReportRow]:
        raise NotImplementedError

    async def delete_rows(self, group_id: int) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class HttpReportGateway(ReportGateway):
    """
    Reports API client.

    The owner is implied by the bearer token, so create_group takes no
    owner argument. Responses arrive wrapped as {"success", "data"}.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else config.api_base_url).rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout if timeout is not None else config.api_timeout_seconds
        self._transport = transport
        self._client = self._open_client()

    def _open_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    @property
    def is_configured(self) -> bool:
        return is_valid_url(self.base_url)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.is_configured:
            raise GatewayUnavailableError("Reports API URL is not configured")
        if self._client.is_closed:
            # aclose() ran on sign-out
            self._client = self._open_client()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise GatewayUnavailableError(f"Reports API unreachable: {e}") from e

        if response.status_code >= 400:
            raise GatewayError(_error_detail(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None

        body = response.json()
        if isinstance(body, dict) and "success" in body and "data" in body:
            return body["data"]
        return body

    async def ping(self) -> None:
        try:
            await self._request("GET", "/health")
        except GatewayUnavailableError:
            raise
        except GatewayError as e:
            raise GatewayUnavailableError(f"Reports API unhealthy: {e.message}", e.status_code) from e

    async def list_groups(self) -> List[ReportGroupInfo]:
        data = await self._request("GET", "/reports/groups")
        return [ReportGroupInfo.from_payload(item) for item in data or []]

    async def create_group(self, name: str, report_date: date) -> ReportGroupInfo:
        data = await self._request(
            "POST",
            "/reports/groups",
            json={"name": name, "report_date": report_date.isoformat()},
        )
        return ReportGroupInfo.from_payload(data)

    async def update_group(self, group_id: int, name: str, report_date: date) -> ReportGroupInfo:
        data = await self._request(
            "PATCH",
            f"/reports/groups/{group_id}",
            json={"name": name, "report_date": report_date.isoformat()},
        )
        return ReportGroupInfo.from_payload(data)

    async def delete_group(self, group_id: int) -> None:
        await self._request("DELETE", f"/reports/groups/{group_id}")

    async def list_rows(self, group_id: int) -> List[ReportRow]:
        data = await self._request("GET", f"/reports/groups/{group_id}/rows")
        return [ReportRow.from_mapping(item) for item in data or []]

    async def upsert_rows(self, group_id: int, rows: Sequence[ReportRow]) -> List[ReportRow]:
        data = await self._request(
            "PUT",
            f"/reports/groups/{group_id}/rows",
            json={"rows": [row.to_payload() for row in rows]},
        )
        return [ReportRow.from_mapping(item) for item in data or []]

    async def delete_rows(self, group_id: int) -> None:
        await self._request("DELETE", f"/reports/groups/{group_id}/rows")

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI validation errors
        detail = "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or f"HTTP {response.status_code}")
