from review_admin.clients.admin_api import AdminApiClient
from review_admin.schemas import DashboardView
from review_admin.services.base import read_or_empty
from review_admin.session import AdminSession
from review_admin.view_model import ALL, ReviewListViewModel, is_all


def load_dashboard(client: AdminApiClient, session: AdminSession, area: str = ALL, branch_id: str = ALL) -> DashboardView:
    stats, stats_error = read_or_empty(
        "load stats",
        client.get_stats,
        None,
        session,
        area=None if is_all(area) else area,
        branch_id=None if is_all(branch_id) else branch_id,
    )
    branches, branches_error = read_or_empty("load branches", client.list_branches, [], session)

    vm = ReviewListViewModel(branches)
    return DashboardView(
        stats=stats,
        areas=vm.areas(),
        branches=vm.branch_options(area),
        error=stats_error or branches_error,
    )
