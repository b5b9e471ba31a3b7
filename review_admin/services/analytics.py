from datetime import datetime, tzinfo
from typing import List, Optional

from review_admin.clients.admin_api import AdminApiClient
from review_admin.config import settings
from review_admin.result import ErrorKind, Result
from review_admin.schemas import ExportFile, MonthOption, ReviewListView
from review_admin.services.base import attempt, read_or_empty
from review_admin.session import AdminSession
from review_admin.view_model import (
    ALL,
    ReviewFilter,
    ReviewListViewModel,
    is_all,
    paginate,
    parse_month,
    recent_months,
    summarize,
    to_row,
)


def month_options(now: Optional[datetime] = None) -> List[MonthOption]:
    return recent_months(now)


def load_month_reviews(
    client: AdminApiClient,
    session: AdminSession,
    month: str,
    branch_id: str = ALL,
    page: int = 1,
    page_size: int = settings.analytics_page_size,
    tz: Optional[tzinfo] = None,
) -> ReviewListView:
    """One calendar month of reviews, newest first, `page_size` per page."""
    parse_month(month)

    reviews, reviews_error = read_or_empty(
        "load analytics reviews",
        client.list_reviews,
        [],
        session,
        branch_id=None if is_all(branch_id) else branch_id,
        month=month,
    )
    branches, branches_error = read_or_empty("list branches", client.list_branches, [], session)

    vm = ReviewListViewModel(branches, tz=tz)
    selected = vm.select(reviews, ReviewFilter(branch_id=branch_id, month=month))
    page_data = paginate(selected, page, page_size)

    return ReviewListView(
        rows=[to_row(r) for r in page_data.rows],
        total_count=page_data.total_count,
        total_pages=page_data.total_pages,
        current_page=page_data.current_page,
        areas=vm.areas(),
        branches=vm.branch_options(),
        summary=summarize(selected),
        error=reviews_error or branches_error,
    )


def export_reviews(client: AdminApiClient, session: AdminSession, month: str, branch_id: str = ALL) -> Result[ExportFile]:
    try:
        parse_month(month)
    except ValueError as e:
        return Result.failure(ErrorKind.VALIDATION, str(e), {"month": "Please select a month"})
    return attempt(
        f"export reviews for {month}",
        client.export_reviews,
        session,
        month,
        None if is_all(branch_id) else branch_id,
    )
