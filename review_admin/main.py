from fastapi import FastAPI, Depends, HTTPException, Cookie, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import select
from typing import Optional, List

from prometheus_fastapi_instrumentator import Instrumentator

from review_admin.clients.admin_api import AdminApiClient
from review_admin.clients.errors import AuthenticationError
from review_admin.config import settings
from review_admin.database import SessionLocal, engine, get_db_session
from review_admin.models import Base
from review_admin.result import ErrorKind, Result
from review_admin.schemas import (
    AdminProfile,
    Branch,
    BranchForm,
    BranchListView,
    ComplaintUpdate,
    DashboardView,
    LoginRequest,
    MenuForm,
    MenuItem,
    MenuListView,
    MonthOption,
    ProfileUpdate,
    ReplyRequest,
    Review,
    ReviewListView,
    ReviewUpdate,
)
from review_admin.services import analytics, auth, branches, dashboard, menus, reviews
from review_admin.session import AdminSession, SqlTokenStorage, TokenStorage

app = FastAPI(title="Review Admin Dashboard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator().instrument(app).expose(app)

api_client = AdminApiClient(settings.admin_api_url)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
VISIT_TYPE_PATTERN = r"(?i)^(all|DINE_IN|TAKEAWAY|DELIVERY)$"


def get_api_client() -> AdminApiClient:
    return api_client

def get_token_storage() -> TokenStorage:
    return SqlTokenStorage(SessionLocal)

def get_admin_session(
    session_key: Optional[str] = Cookie(None, alias=settings.session_cookie_name),
    storage: TokenStorage = Depends(get_token_storage),
) -> AdminSession:
    return AdminSession(storage, session_key)

def require_session(session: AdminSession = Depends(get_admin_session)) -> AdminSession:
    if not session.is_authenticated:
        raise AuthenticationError()
    return session


@app.exception_handler(AuthenticationError)
def handle_authentication_error(request: Request, exc: AuthenticationError):
    response = JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc), "redirect": settings.login_path},
    )
    response.delete_cookie(settings.session_cookie_name)
    return response


def unwrap(result: Result):
    if result.ok:
        return result.value

    error = result.error
    if error.kind == ErrorKind.AUTHENTICATION:
        raise AuthenticationError(error.message)
    if error.kind == ErrorKind.VALIDATION:
        raise HTTPException(status_code=422, detail={"message": error.message, "fields": error.fields})
    if error.kind == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail=error.message)
    if error.kind == ErrorKind.TRANSPORT:
        raise HTTPException(status_code=502, detail=f"Admin API unavailable: {error.message}")
    raise HTTPException(status_code=400, detail=error.message)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)

@app.get("/")
def index(session: AdminSession = Depends(get_admin_session)):
    target = "/dashboard" if session.is_authenticated else settings.login_path
    return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

# --- auth ---------------------------------------------------------------------

@app.post("/login")
def login(
    payload: LoginRequest,
    response: Response,
    previous: AdminSession = Depends(get_admin_session),
    storage: TokenStorage = Depends(get_token_storage),
    client: AdminApiClient = Depends(get_api_client),
):
    session = AdminSession(storage)
    result = auth.login(client, session, payload.email, payload.password)
    if not result.ok:
        if result.error.kind == ErrorKind.TRANSPORT:
            unwrap(result)
        raise HTTPException(status_code=401, detail=result.error.message)

    # drop the token stored under the previous cookie
    previous.clear()

    response.set_cookie(
        settings.session_cookie_name,
        session.key,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"success": True, "redirect": "/dashboard"}

@app.post("/logout")
def logout(response: Response, session: AdminSession = Depends(get_admin_session)):
    auth.logout(session)
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True, "redirect": settings.login_path}

@app.get("/profile", response_model=AdminProfile)
def get_profile(session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    return unwrap(auth.get_profile(client, session))

@app.put("/profile", response_model=AdminProfile)
def update_profile(
    payload: ProfileUpdate,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(auth.update_profile(client, session, payload))

# --- dashboard ------------------------------------------------------------------

@app.get("/dashboard", response_model=DashboardView)
def get_dashboard(
    area: str = "All",
    branch_id: str = Query("All", alias="branchId"),
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return dashboard.load_dashboard(client, session, area=area, branch_id=branch_id)

# --- branches ---------------------------------------------------------------------

@app.get("/branches", response_model=BranchListView)
def list_branches(
    branch_status: str = Query("all", alias="status", pattern="^(all|active|inactive)$"),
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return branches.list_branches(client, session, branch_status)

@app.get("/branches/{branch_id}", response_model=Branch)
def get_branch(branch_id: str, session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    return unwrap(branches.get_branch(client, session, branch_id))

@app.post("/branches", response_model=Branch, status_code=201)
def create_branch(
    payload: BranchForm,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(branches.create_branch(client, session, payload))

@app.put("/branches/{branch_id}", response_model=Branch)
def update_branch(
    branch_id: str,
    payload: BranchForm,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(branches.update_branch(client, session, branch_id, payload))

@app.delete("/branches/{branch_id}")
def delete_branch(branch_id: str, session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    unwrap(branches.delete_branch(client, session, branch_id))
    return {"success": True}

# --- menus ------------------------------------------------------------------------

@app.get("/menus", response_model=MenuListView)
def list_menus(session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    return menus.list_menus(client, session)

@app.get("/menus/{menu_id}", response_model=MenuItem)
def get_menu(menu_id: str, session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    return unwrap(menus.get_menu(client, session, menu_id))

@app.post("/menus", response_model=MenuItem, status_code=201)
def create_menu(
    payload: MenuForm,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(menus.create_menu(client, session, payload))

@app.put("/menus/{menu_id}", response_model=MenuItem)
def update_menu(
    menu_id: str,
    payload: MenuForm,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(menus.update_menu(client, session, menu_id, payload))

@app.delete("/menus/{menu_id}")
def delete_menu(menu_id: str, session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    unwrap(menus.delete_menu(client, session, menu_id))
    return {"success": True}

# --- reviews ----------------------------------------------------------------------

@app.get("/reviews", response_model=ReviewListView)
def list_reviews(
    area: str = "All",
    branch_id: str = Query("All", alias="branchId"),
    visit_type: str = Query("All", alias="visitType", pattern=VISIT_TYPE_PATTERN),
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return reviews.load_review_list(client, session, area=area, branch_id=branch_id, visit_type=visit_type.upper())

@app.put("/reviews/{review_id}", response_model=Review)
def update_review(
    review_id: str,
    payload: ReviewUpdate,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(
        reviews.update_review(
            client,
            session,
            review_id,
            staff_reply=payload.staff_reply,
            status=payload.status,
            remarks=payload.remarks,
        )
    )

@app.put("/reviews/{review_id}/reply", response_model=Review)
def reply_to_review(
    review_id: str,
    payload: ReplyRequest,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(reviews.reply_to_review(client, session, review_id, payload.staff_reply))

@app.put("/reviews/{review_id}/complaint", response_model=Review)
def update_complaint(
    review_id: str,
    payload: ComplaintUpdate,
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return unwrap(reviews.update_complaint(client, session, review_id, status=payload.status, remarks=payload.remarks))

@app.delete("/reviews/{review_id}")
def delete_review(review_id: str, session: AdminSession = Depends(require_session), client: AdminApiClient = Depends(get_api_client)):
    unwrap(reviews.delete_review(client, session, review_id))
    return {"success": True}

# --- analytics ----------------------------------------------------------------------

@app.get("/analytics/months", response_model=List[MonthOption])
def list_months(session: AdminSession = Depends(require_session)):
    return analytics.month_options()

@app.get("/analytics/reviews", response_model=ReviewListView)
def analytics_reviews(
    month: str = Query(..., pattern=MONTH_PATTERN),
    branch_id: str = Query("all", alias="branchId"),
    page: int = Query(1, ge=1),
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    return analytics.load_month_reviews(client, session, month, branch_id=branch_id, page=page)

@app.get("/analytics/export")
def export_reviews(
    month: str = Query(..., pattern=MONTH_PATTERN),
    branch_id: str = Query("all", alias="branchId"),
    session: AdminSession = Depends(require_session),
    client: AdminApiClient = Depends(get_api_client),
):
    export = unwrap(analytics.export_reviews(client, session, month, branch_id=branch_id))
    return Response(
        content=export.content,
        media_type=export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )

@app.get("/health", tags=["health"])
def health():
    try:
        with get_db_session() as db:
            db.execute(select(1))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database unavailable: {e}",
        )
    return {"status": "ok", "db": "ok"}
