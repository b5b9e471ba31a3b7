from review_admin.clients.admin_api import AdminApiClient
from review_admin.result import Result
from review_admin.schemas import Branch, BranchForm, BranchListView
from review_admin.services.base import attempt, read_or_empty
from review_admin.session import AdminSession
from review_admin.view_model import filter_branches_by_status


def list_branches(client: AdminApiClient, session: AdminSession, status: str = "all") -> BranchListView:
    branches, error = read_or_empty("list branches", client.list_branches, [], session)
    return BranchListView(branches=filter_branches_by_status(branches, status), error=error)


def get_branch(client: AdminApiClient, session: AdminSession, branch_id: str) -> Result[Branch]:
    return attempt(f"get branch {branch_id}", client.get_branch, session, branch_id)


def create_branch(client: AdminApiClient, session: AdminSession, form: BranchForm) -> Result[Branch]:
    return attempt("create branch", client.create_branch, session, form.to_payload())


def update_branch(client: AdminApiClient, session: AdminSession, branch_id: str, form: BranchForm) -> Result[Branch]:
    return attempt(f"update branch {branch_id}", client.update_branch, session, branch_id, form.to_payload())


def delete_branch(client: AdminApiClient, session: AdminSession, branch_id: str) -> Result[None]:
    return attempt(f"delete branch {branch_id}", client.delete_branch, session, branch_id)
