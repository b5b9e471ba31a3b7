import re
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from review_admin.clients.errors import AuthenticationError, RemoteError, TransportError
from review_admin.config import settings
from review_admin.logger import logger
from review_admin.schemas import (
    AdminProfile,
    ApiEnvelope,
    Branch,
    ComplaintStatus,
    DashboardStats,
    ExportFile,
    MenuItem,
    Review,
)
from review_admin.session import AdminSession

_FILENAME_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)

M = TypeVar("M", bound=BaseModel)


class AdminApiClient:
    """
    Thin wrapper over the admin REST API.

    Every call takes the AdminSession explicitly; the client itself holds no
    authentication state. Responses use the `{success, data, error}` envelope
    and `data` is only returned once `success` has been checked.
    """

    def __init__(self, base_url: str = settings.admin_api_url, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()

    # -- transport ---------------------------------------------------------

    def _send(self, session: Optional[AdminSession], method: str, path: str, **kwargs):
        headers = {}
        if session is not None:
            headers.update(session.auth_headers())
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"

        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise TransportError(str(e)) from e

        if resp.status_code == 401 and session is not None:
            logger.warning("%s %s rejected the session token", method, path)
            session.clear()
            raise AuthenticationError("Session expired, please log in again")
        return resp

    def _request(self, session: Optional[AdminSession], method: str, path: str, **kwargs) -> Any:
        resp = self._send(session, method, path, **kwargs)

        try:
            envelope = ApiEnvelope.model_validate(resp.json())
        except ValueError as e:
            raise TransportError(f"Invalid response from admin API ({resp.status_code})") from e

        if not resp.ok or not envelope.success:
            message = envelope.error or f"Request failed with status {resp.status_code}"
            logger.warning("%s %s returned an error: %s", method, path, message)
            raise RemoteError(message, status_code=resp.status_code)
        return envelope.data

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("admin API sent an unreadable %s: %s", model.__name__, e)
            raise TransportError(f"Invalid response from admin API: malformed {model.__name__}") from e

    def _parse_list(self, model: Type[M], data: Any) -> List[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise TransportError(f"Invalid response from admin API: expected a list of {model.__name__}")
        return [self._parse(model, item) for item in data]

    # -- auth ----------------------------------------------------------------

    def login(self, email: str, password: str) -> str:
        data = self._request(None, "POST", "/api/admin/auth/login", json={"email": email, "password": password})
        if data is not None and not isinstance(data, dict):
            raise TransportError("Invalid response from admin API: malformed login data")
        token = (data or {}).get("token")
        if not token:
            raise RemoteError("Login failed")
        return token

    def get_me(self, session: AdminSession) -> AdminProfile:
        return self._parse(AdminProfile, self._request(session, "GET", "/api/admin/auth/me"))

    def update_profile(self, session: AdminSession, payload: Dict[str, Any]) -> AdminProfile:
        data = self._request(session, "PUT", "/api/admin/auth/profile", json=payload)
        return self._parse(AdminProfile, data or {})

    # -- branches --------------------------------------------------------------

    def list_branches(self, session: AdminSession) -> List[Branch]:
        data = self._request(session, "GET", "/api/admin/branches")
        return self._parse_list(Branch, data)

    def get_branch(self, session: AdminSession, branch_id: str) -> Branch:
        return self._parse(Branch, self._request(session, "GET", f"/api/admin/branches/{branch_id}"))

    def create_branch(self, session: AdminSession, payload: Dict[str, Any]) -> Branch:
        return self._parse(Branch, self._request(session, "POST", "/api/admin/branches", json=payload))

    def update_branch(self, session: AdminSession, branch_id: str, payload: Dict[str, Any]) -> Branch:
        data = self._request(session, "PUT", f"/api/admin/branches/{branch_id}", json=payload)
        return self._parse(Branch, data)

    def delete_branch(self, session: AdminSession, branch_id: str) -> None:
        self._request(session, "DELETE", f"/api/admin/branches/{branch_id}")

    # -- menus -------------------------------------------------------------------

    def list_menus(self, session: AdminSession) -> List[MenuItem]:
        data = self._request(session, "GET", "/api/admin/menus")
        return self._parse_list(MenuItem, data)

    def create_menu(self, session: AdminSession, payload: Dict[str, Any]) -> MenuItem:
        return self._parse(MenuItem, self._request(session, "POST", "/api/admin/menus", json=payload))

    def update_menu(self, session: AdminSession, menu_id: str, payload: Dict[str, Any]) -> MenuItem:
        data = self._request(session, "PUT", f"/api/admin/menus/{menu_id}", json=payload)
        return self._parse(MenuItem, data)

    def delete_menu(self, session: AdminSession, menu_id: str) -> None:
        self._request(session, "DELETE", f"/api/admin/menus/{menu_id}")

    # -- reviews -------------------------------------------------------------------

    def list_reviews(
        self,
        session: AdminSession,
        branch_id: Optional[str] = None,
        visit_type: Optional[str] = None,
        month: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Review]:
        params = {}
        if branch_id:
            params["branchId"] = branch_id
        if visit_type:
            params["visitType"] = visit_type
        if month:
            params["month"] = month
        if limit is not None:
            params["limit"] = str(limit)

        data = self._request(session, "GET", "/api/admin/reviews", params=params)
        return self._parse_list(Review, data)

    def get_review(self, session: AdminSession, review_id: str) -> Review:
        return self._parse(Review, self._request(session, "GET", f"/api/admin/reviews/{review_id}"))

    def update_review(self, session: AdminSession, review_id: str, changes: Dict[str, Any]) -> Review:
        data = self._request(session, "PUT", f"/api/admin/reviews/{review_id}", json=changes)
        return self._parse(Review, data)

    def reply_to_review(self, session: AdminSession, review_id: str, staff_reply: str) -> Review:
        return self.update_review(session, review_id, {"staffReply": staff_reply})

    def update_complaint(
        self,
        session: AdminSession,
        review_id: str,
        status: ComplaintStatus,
        remarks: Optional[str],
    ) -> Review:
        # The endpoint always expects both fields together
        return self.update_review(session, review_id, {"status": status.value, "remarks": remarks})

    def delete_review(self, session: AdminSession, review_id: str) -> None:
        self._request(session, "DELETE", f"/api/admin/reviews/{review_id}")

    def export_reviews(self, session: AdminSession, month: str, branch_id: Optional[str] = None) -> ExportFile:
        params = {"month": month}
        if branch_id:
            params["branchId"] = branch_id

        resp = self._send(session, "GET", "/api/admin/reviews/export", params=params)
        if not resp.ok:
            try:
                message = ApiEnvelope.model_validate(resp.json()).error
            except ValueError:
                message = None
            raise RemoteError(message or f"Export failed with status {resp.status_code}", status_code=resp.status_code)

        disposition = resp.headers.get("Content-Disposition", "")
        match = _FILENAME_RE.search(disposition)
        return ExportFile(
            filename=match.group(1) if match else f"reviews-{month}.xlsx",
            content_type=resp.headers.get("Content-Type", "application/octet-stream"),
            content=resp.content,
        )

    # -- stats ---------------------------------------------------------------------

    def get_stats(self, session: AdminSession, area: Optional[str] = None, branch_id: Optional[str] = None) -> DashboardStats:
        params = {}
        if area:
            params["area"] = area
        if branch_id:
            params["branchId"] = branch_id
        return self._parse(DashboardStats, self._request(session, "GET", "/api/admin/stats", params=params) or {})
