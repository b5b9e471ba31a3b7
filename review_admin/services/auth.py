from review_admin.clients.admin_api import AdminApiClient
from review_admin.result import ErrorKind, Result
from review_admin.schemas import AdminProfile, ProfileUpdate
from review_admin.services.base import attempt
from review_admin.session import AdminSession


def login(client: AdminApiClient, session: AdminSession, email: str, password: str) -> Result[str]:
    result = attempt("login", client.login, email, password)
    if result.ok:
        session.set_token(result.value)
    return result


def logout(session: AdminSession) -> None:
    session.clear()


def get_profile(client: AdminApiClient, session: AdminSession) -> Result[AdminProfile]:
    return attempt("get profile", client.get_me, session)


def update_profile(client: AdminApiClient, session: AdminSession, update: ProfileUpdate) -> Result[AdminProfile]:
    payload = update.to_payload()
    if not payload:
        return Result.failure(ErrorKind.VALIDATION, "Nothing to update")
    return attempt("update profile", client.update_profile, session, payload)
