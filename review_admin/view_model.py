"""
Review list view model.

Turns a raw list of reviews into the page a dashboard view renders:
filter by branch/area/visit type/month, sort newest first, paginate.
All functions are pure; the input list is never mutated.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from review_admin.config import settings
from review_admin.schemas import (
    Branch,
    BranchOption,
    ComplaintStatus,
    MenuGroup,
    MenuItem,
    MonthOption,
    RatingTier,
    Review,
    ReviewRow,
    ReviewSummary,
)

ALL = "All"

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def is_all(value: Optional[str]) -> bool:
    """Treat "All" (any case), empty and None as no filter."""
    return not value or value.lower() == ALL.lower()


def dashboard_timezone() -> tzinfo:
    return ZoneInfo(settings.dashboard_timezone)


@dataclass(frozen=True)
class ReviewFilter:
    area: str = ALL
    branch_id: str = ALL
    visit_type: str = ALL
    month: Optional[str] = None
    page: int = 1
    page_size: Optional[int] = None


@dataclass(frozen=True)
class ReviewPage:
    rows: List[Review]
    total_count: int
    total_pages: int
    current_page: int


# --- areas ---------------------------------------------------------------------

def branch_area(branch: Branch, fallback: str = settings.default_area) -> str:
    return branch.area or fallback


def resolve_area(
    review: Review,
    branches_by_id: Optional[Dict[str, Branch]] = None,
    fallback: str = settings.default_area,
) -> str:
    if review.branch and review.branch.area:
        return review.branch.area
    branch = (branches_by_id or {}).get(review.resolved_branch_id or "")
    if branch and branch.area:
        return branch.area
    return fallback


def available_areas(branches: Iterable[Branch], fallback: str = settings.default_area) -> List[str]:
    areas = [ALL]
    for branch in branches:
        area = branch_area(branch, fallback)
        if area not in areas:
            areas.append(area)
    return areas


def branches_in_area(branches: Iterable[Branch], area: str = ALL, fallback: str = settings.default_area) -> List[Branch]:
    if is_all(area):
        return list(branches)
    return [b for b in branches if branch_area(b, fallback) == area]


def branch_options(branches: Iterable[Branch], fallback: str = settings.default_area) -> List[BranchOption]:
    return [BranchOption(id=b.id, name=b.name, area=branch_area(b, fallback)) for b in branches]


# --- months --------------------------------------------------------------------

def parse_month(month: str) -> Tuple[int, int]:
    match = _MONTH_RE.match(month or "")
    if not match:
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def month_bounds(month: str, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """First instant of `month` and first instant of the following month, in `tz`."""
    tz = tz or dashboard_timezone()
    year, mon = parse_month(month)
    start = datetime(year, mon, 1, tzinfo=tz)
    end = datetime(year + 1, 1, 1, tzinfo=tz) if mon == 12 else datetime(year, mon + 1, 1, tzinfo=tz)
    return start, end


def recent_months(now: Optional[datetime] = None, count: int = 12) -> List[MonthOption]:
    """The current month and the `count - 1` before it, newest first."""
    now = now or datetime.now(dashboard_timezone())
    months = []
    year, mon = now.year, now.month
    for _ in range(count):
        first = datetime(year, mon, 1)
        months.append(MonthOption(value=f"{year}-{mon:02d}", label=first.strftime("%B %Y")))
        year, mon = (year - 1, 12) if mon == 1 else (year, mon - 1)
    return months


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


# --- filter / sort / paginate ------------------------------------------------------

def filter_reviews(
    reviews: Sequence[Review],
    criteria: ReviewFilter,
    branches_by_id: Optional[Dict[str, Branch]] = None,
    fallback_area: str = settings.default_area,
    tz: Optional[tzinfo] = None,
) -> List[Review]:
    result = list(reviews)

    if not is_all(criteria.branch_id):
        result = [r for r in result if r.resolved_branch_id == criteria.branch_id]
    elif not is_all(criteria.area):
        result = [r for r in result if resolve_area(r, branches_by_id, fallback_area) == criteria.area]

    if not is_all(criteria.visit_type):
        result = [r for r in result if r.visit_type.value == criteria.visit_type]

    if criteria.month:
        start, end = month_bounds(criteria.month, tz)
        result = [r for r in result if start <= _aware(r.created_at) < end]

    return result


def sort_newest_first(reviews: Sequence[Review]) -> List[Review]:
    # sorted() is stable with reverse=True: equal timestamps keep input order
    return sorted(reviews, key=lambda r: _aware(r.created_at), reverse=True)


def paginate(reviews: Sequence[Review], page: int = 1, page_size: Optional[int] = None) -> ReviewPage:
    total = len(reviews)
    if page_size is None:
        return ReviewPage(rows=list(reviews), total_count=total, total_pages=1 if total else 0, current_page=1)
    if page_size < 1:
        raise ValueError("page_size must be positive")

    total_pages = math.ceil(total / page_size)
    current = min(max(page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    return ReviewPage(
        rows=list(reviews[start:start + page_size]),
        total_count=total,
        total_pages=total_pages,
        current_page=current,
    )


class ReviewListViewModel:
    def __init__(
        self,
        branches: Iterable[Branch] = (),
        fallback_area: str = settings.default_area,
        tz: Optional[tzinfo] = None,
    ):
        self.branches = list(branches)
        self.branches_by_id = {b.id: b for b in self.branches}
        self.fallback_area = fallback_area
        self.tz = tz

    def select(self, reviews: Sequence[Review], criteria: ReviewFilter) -> List[Review]:
        """Filtered and sorted, before pagination."""
        return sort_newest_first(filter_reviews(reviews, criteria, self.branches_by_id, self.fallback_area, self.tz))

    def build(self, reviews: Sequence[Review], criteria: ReviewFilter) -> ReviewPage:
        return paginate(self.select(reviews, criteria), criteria.page, criteria.page_size)

    def areas(self) -> List[str]:
        return available_areas(self.branches, self.fallback_area)

    def branch_options(self, area: str = ALL) -> List[BranchOption]:
        return branch_options(branches_in_area(self.branches, area, self.fallback_area), self.fallback_area)


# --- display -------------------------------------------------------------------

def rating_tier(rating: int) -> RatingTier:
    if rating >= 4:
        return RatingTier.POSITIVE
    if rating == 3:
        return RatingTier.NEUTRAL
    return RatingTier.NEGATIVE


def is_complaint_editable(review: Review) -> bool:
    return review.overall_rating <= 3


def display_name(review: Review) -> str:
    if review.guest_name:
        return review.guest_name
    if review.user and review.user.name:
        return review.user.name
    return "Anonymous"


def contact_phone(review: Review) -> Optional[str]:
    if review.guest_phone:
        return review.guest_phone
    return review.user.phone if review.user else None


def to_row(review: Review) -> ReviewRow:
    editable = is_complaint_editable(review)
    data = review.model_dump()
    if not editable:
        data["complaint_status"] = None
        data["admin_remarks"] = None
    return ReviewRow(
        **data,
        display_name=display_name(review),
        contact_phone=contact_phone(review),
        rating_tier=rating_tier(review.overall_rating),
        complaint_editable=editable,
    )


def summarize(reviews: Sequence[Review]) -> ReviewSummary:
    if not reviews:
        return ReviewSummary()
    tiers = [rating_tier(r.overall_rating) for r in reviews]
    complaints = [r for r in reviews if is_complaint_editable(r)]
    return ReviewSummary(
        total=len(reviews),
        average_rating=round(sum(r.overall_rating for r in reviews) / len(reviews), 2),
        open_complaints=sum(1 for r in complaints if r.complaint_status != ComplaintStatus.CLOSED),
        closed_complaints=sum(1 for r in complaints if r.complaint_status == ComplaintStatus.CLOSED),
        positive=tiers.count(RatingTier.POSITIVE),
        neutral=tiers.count(RatingTier.NEUTRAL),
        negative=tiers.count(RatingTier.NEGATIVE),
    )


# --- other list helpers -------------------------------------------------------------

def filter_branches_by_status(branches: Iterable[Branch], status: str = "all") -> List[Branch]:
    if status == "active":
        return [b for b in branches if b.is_active]
    if status == "inactive":
        return [b for b in branches if not b.is_active]
    return list(branches)


def group_menu_items(items: Iterable[MenuItem]) -> List[MenuGroup]:
    grouped: Dict[str, List[MenuItem]] = {}
    for item in items:
        grouped.setdefault(item.category.value, []).append(item)
    return [MenuGroup(category=category, items=entries) for category, entries in grouped.items()]
