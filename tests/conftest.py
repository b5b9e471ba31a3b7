import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_API_URL", "http://admin-api.test")

import copy
from datetime import datetime, timezone
from typing import Optional

import pytest
import requests
from fastapi.testclient import TestClient
from requests.structures import CaseInsensitiveDict

from review_admin.clients.admin_api import AdminApiClient
from review_admin.schemas import Review
from review_admin.session import AdminSession, MemoryTokenStorage

BASE_URL = "http://admin-api.test"
TOKEN = "tok-1"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret"


def make_review(
    review_id: str,
    branch_id: str = "b1",
    rating: int = 5,
    created_at: Optional[datetime] = None,
    visit_type: str = "DINE_IN",
    area: Optional[str] = None,
    **extra,
) -> Review:
    data = {
        "id": review_id,
        "branchId": branch_id,
        "overallRating": rating,
        "visitType": visit_type,
        "createdAt": created_at or datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc),
        "branch": {"id": branch_id, "name": f"Branch {branch_id}", "area": area},
    }
    data.update(extra)
    return Review.model_validate(data)


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, content: bytes = b"", headers=None):
        self.status_code = status_code
        self._body = body
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("response has no JSON body")
        return self._body


def ok(data=None, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code, {"success": True, "data": data})


def fail(status_code: int, error: str) -> FakeResponse:
    return FakeResponse(status_code, {"success": False, "error": error})


def _review_row(review_id, branch, rating, created_at, visit_type="DINE_IN", **extra):
    row = {
        "id": review_id,
        "branchId": branch["id"],
        "overallRating": rating,
        "visitType": visit_type,
        "createdAt": created_at,
        "branch": {"id": branch["id"], "name": branch["name"], "city": "Chennai", "area": branch.get("area")},
    }
    row.update(extra)
    return row


class FakeAdminApi:
    """In-memory stand-in for the admin REST API, plugged in as the client's HTTP session."""

    def __init__(self):
        self.calls = []
        self.down = False
        self.fail_writes = False
        self.profile = {"id": "a1", "name": "Admin", "email": ADMIN_EMAIL, "phone": "9000000000"}

        self.branches = {
            "b1": {"id": "b1", "name": "Perambur", "area": "Perambur", "city": "Chennai", "isActive": True,
                   "workingHours": "9 AM - 10 PM"},
            "b2": {"id": "b2", "name": "Anna Nagar East", "area": "Anna Nagar", "city": "Chennai", "isActive": True,
                   "workingHours": {"mon": {"open": "09:00", "close": "22:00"}}},
            "b3": {"id": "b3", "name": "Anna Nagar West", "area": "Anna Nagar", "city": "Chennai", "isActive": True},
            "b4": {"id": "b4", "name": "T Nagar", "area": None, "city": "Chennai", "isActive": False},
        }

        b = self.branches
        self.reviews = {
            r["id"]: r
            for r in [
                _review_row("r1", b["b1"], 5, "2024-03-05T10:00:00Z", guestName="Ravi"),
                _review_row("r2", b["b2"], 2, "2024-03-06T10:00:00Z", "TAKEAWAY",
                            complaintStatus="open", adminRemarks="Called guest"),
                _review_row("r3", b["b3"], 4, "2024-03-07T10:00:00Z", "DELIVERY",
                            user={"name": "Meena", "email": "meena@example.com", "phone": "9111111111"}),
                _review_row("r4", b["b4"], 3, "2024-03-08T10:00:00Z"),
                _review_row("r5", b["b2"], 1, "2024-02-20T10:00:00Z"),
                # 2024-04-01 01:30 in Chennai
                _review_row("r6", b["b1"], 3, "2024-03-31T20:00:00Z"),
            ]
        }

        self.menus = {
            "m1": {"id": "m1", "name": "Mysore Pak", "price": 120.0, "category": "SWEETS", "branchId": "b1",
                   "isAvailable": True},
            "m2": {"id": "m2", "name": "Murukku", "price": 80.0, "category": "SNACKS", "branchId": "b1",
                   "isAvailable": True},
            "m3": {"id": "m3", "name": "Jangiri", "price": 90.0, "category": "SWEETS", "branchId": "b2",
                   "isAvailable": False},
        }
        self._next_id = 100

    def calls_to(self, method: str, path: str):
        return [c for c in self.calls if c[0] == method and c[1] == path]

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    # requests.Session.request signature
    def request(self, method, url, headers=None, params=None, json=None, **kwargs):
        assert url.startswith(BASE_URL), url
        path = url[len(BASE_URL):]
        self.calls.append((method, path, dict(params or {}), copy.deepcopy(json)))

        if self.down:
            raise requests.ConnectionError("connection refused")

        if path == "/api/admin/auth/login":
            if json == {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}:
                return ok({"token": TOKEN})
            return fail(401, "Invalid credentials")

        if (headers or {}).get("Authorization") != f"Bearer {TOKEN}":
            return fail(401, "Unauthorized")

        if self.fail_writes and method in ("POST", "PUT", "DELETE"):
            return fail(500, "Database error")

        parts = path.strip("/").split("/")[2:]
        handler = getattr(self, f"_handle_{parts[0]}")
        return handler(method, parts[1:], params or {}, json)

    def _handle_auth(self, method, rest, params, body):
        if rest == ["me"] and method == "GET":
            return ok(self.profile)
        if rest == ["profile"] and method == "PUT":
            self.profile.update({k: v for k, v in body.items() if k in ("name", "phone")})
            return ok(self.profile)
        return fail(404, "Not found")

    def _crud(self, store, prefix, label, method, rest, body):
        if not rest:
            if method == "GET":
                return ok(list(store.values()))
            item = dict(body, id=self._new_id(prefix))
            store[item["id"]] = item
            return ok(item, 201)

        item = store.get(rest[0])
        if item is None:
            return fail(404, f"{label} not found")
        if method == "GET":
            return ok(item)
        if method == "PUT":
            item.update(body)
            return ok(item)
        del store[rest[0]]
        return ok()

    def _handle_branches(self, method, rest, params, body):
        return self._crud(self.branches, "b", "Branch", method, rest, body)

    def _handle_menus(self, method, rest, params, body):
        return self._crud(self.menus, "m", "Menu item", method, rest, body)

    def _handle_reviews(self, method, rest, params, body):
        if rest == ["export"]:
            return FakeResponse(
                200,
                content=b"PK-fake-xlsx",
                headers={
                    "Content-Type": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                    "Content-Disposition": f'attachment; filename="reviews-{params["month"]}.xlsx"',
                },
            )

        if not rest and method == "GET":
            rows = list(self.reviews.values())
            if "branchId" in params:
                rows = [r for r in rows if r["branchId"] == params["branchId"]]
            if "visitType" in params:
                rows = [r for r in rows if r["visitType"] == params["visitType"]]
            if "month" in params:
                # UTC month, wider than the dashboard's local-month guard on purpose
                rows = [r for r in rows if r["createdAt"][:7] == params["month"]]
            return ok(rows)

        review = self.reviews.get(rest[0]) if rest else None
        if review is None:
            return fail(404, "Review not found")
        if method == "GET":
            return ok(review)
        if method == "PUT":
            if "staffReply" in body:
                review["staffReply"] = body["staffReply"]
                review["staffReplyAt"] = "2024-03-20T09:00:00Z"
            if "status" in body:
                review["complaintStatus"] = body["status"]
            if "remarks" in body:
                review["adminRemarks"] = body["remarks"]
            return ok(review)
        del self.reviews[rest[0]]
        return ok()

    def _handle_stats(self, method, rest, params, body):
        rows = list(self.reviews.values())
        if "branchId" in params:
            rows = [r for r in rows if r["branchId"] == params["branchId"]]
        elif "area" in params:
            rows = [r for r in rows if (r["branch"].get("area") or "Chennai") == params["area"]]
        average = sum(r["overallRating"] for r in rows) / len(rows) if rows else 0
        return ok({"totalBranches": len(self.branches), "totalReviews": len(rows), "averageRating": round(average, 2)})


@pytest.fixture()
def backend():
    return FakeAdminApi()


@pytest.fixture()
def api_client(backend):
    return AdminApiClient(BASE_URL, http=backend)


@pytest.fixture()
def token_storage():
    return MemoryTokenStorage()


@pytest.fixture()
def admin_session(token_storage):
    session = AdminSession(token_storage)
    session.set_token(TOKEN)
    return session


@pytest.fixture()
def app(api_client, token_storage):
    from review_admin.main import app, get_api_client, get_token_storage

    app.dependency_overrides[get_api_client] = lambda: api_client
    app.dependency_overrides[get_token_storage] = lambda: token_storage
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def logged_in(client):
    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return client
