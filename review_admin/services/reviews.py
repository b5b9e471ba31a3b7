from typing import Optional

from review_admin.clients.admin_api import AdminApiClient
from review_admin.config import settings
from review_admin.result import ErrorKind, Result
from review_admin.schemas import ComplaintStatus, Review, ReviewListView
from review_admin.services.base import attempt, read_or_empty
from review_admin.session import AdminSession
from review_admin.view_model import (
    ALL,
    ReviewFilter,
    ReviewListViewModel,
    is_all,
    is_complaint_editable,
    to_row,
)


def _build_view(vm: ReviewListViewModel, reviews, criteria: ReviewFilter, error: Optional[str]) -> ReviewListView:
    page = vm.build(reviews, criteria)
    return ReviewListView(
        rows=[to_row(r) for r in page.rows],
        total_count=page.total_count,
        total_pages=page.total_pages,
        current_page=page.current_page,
        areas=vm.areas(),
        branches=vm.branch_options(criteria.area),
        error=error,
    )


def load_review_list(
    client: AdminApiClient,
    session: AdminSession,
    area: str = ALL,
    branch_id: str = ALL,
    visit_type: str = ALL,
    limit: int = settings.reviews_fetch_limit,
) -> ReviewListView:
    """
    Reviews management view (unpaged).

    Branch and visit type are filtered by the admin API; area is not an
    admin API filter, so it is applied here through each review's branch.
    """
    reviews, reviews_error = read_or_empty(
        "list reviews",
        client.list_reviews,
        [],
        session,
        branch_id=None if is_all(branch_id) else branch_id,
        visit_type=None if is_all(visit_type) else visit_type,
        limit=limit,
    )
    branches, branches_error = read_or_empty("list branches", client.list_branches, [], session)

    vm = ReviewListViewModel(branches)
    criteria = ReviewFilter(area=area, branch_id=branch_id, visit_type=visit_type)
    return _build_view(vm, reviews, criteria, reviews_error or branches_error)


def update_review(
    client: AdminApiClient,
    session: AdminSession,
    review_id: str,
    staff_reply: Optional[str] = None,
    status: Optional[ComplaintStatus] = None,
    remarks: Optional[str] = None,
) -> Result[Review]:
    """
    Send every changed field of one review in a single PUT.

    Status and remarks always travel together. Whichever of the two is not
    being changed is taken from a fresh read of the review, so a stale local
    copy never overwrites another admin's edit.
    """
    if staff_reply is None and status is None and remarks is None:
        return Result.failure(ErrorKind.VALIDATION, "Nothing to update")
    if staff_reply is not None and not staff_reply.strip():
        return Result.failure(ErrorKind.VALIDATION, "Reply cannot be empty", {"staffReply": "Reply cannot be empty"})

    if status is None and remarks is None:
        return attempt(f"reply to review {review_id}", client.reply_to_review, session, review_id, staff_reply)

    fresh = attempt(f"read review {review_id}", client.get_review, session, review_id)
    if not fresh.ok:
        return fresh
    current = fresh.value
    if not is_complaint_editable(current):
        return Result.failure(
            ErrorKind.VALIDATION,
            "Complaint tracking is only available for reviews rated 3 or below",
        )

    new_status = status or current.complaint_status or ComplaintStatus.OPEN
    new_remarks = remarks if remarks is not None else current.admin_remarks

    if staff_reply is None:
        return attempt(
            f"update complaint {review_id}", client.update_complaint, session, review_id, new_status, new_remarks
        )

    changes = {"staffReply": staff_reply, "status": new_status.value, "remarks": new_remarks}
    return attempt(f"update review {review_id}", client.update_review, session, review_id, changes)


def reply_to_review(client: AdminApiClient, session: AdminSession, review_id: str, reply: Optional[str]) -> Result[Review]:
    if reply is None or not reply.strip():
        return Result.failure(ErrorKind.VALIDATION, "Reply cannot be empty", {"staffReply": "Reply cannot be empty"})
    return update_review(client, session, review_id, staff_reply=reply)


def update_complaint(
    client: AdminApiClient,
    session: AdminSession,
    review_id: str,
    status: Optional[ComplaintStatus] = None,
    remarks: Optional[str] = None,
) -> Result[Review]:
    if status is None and remarks is None:
        return Result.failure(ErrorKind.VALIDATION, "Provide a status or remarks")
    return update_review(client, session, review_id, status=status, remarks=remarks)


def delete_review(client: AdminApiClient, session: AdminSession, review_id: str) -> Result[None]:
    return attempt(f"delete review {review_id}", client.delete_review, session, review_id)
