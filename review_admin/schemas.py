import json
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class VisitType(str, Enum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"


class ComplaintStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class RatingTier(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class MenuCategory(str, Enum):
    SWEETS = "SWEETS"
    SNACKS = "SNACKS"
    SAVOURIES = "SAVOURIES"
    COOKIES = "COOKIES"
    PODI = "PODI"
    THOKKU = "THOKKU"
    PICKLE = "PICKLE"
    GIFT_HAMPER = "GIFT_HAMPER"


# --- admin API envelope -----------------------------------------------------

class ApiEnvelope(BaseModel):
    success: bool = False
    data: Any = None
    error: Optional[str] = None


# --- working hours ------------------------------------------------------------

class DayHours(BaseModel):
    open: str
    close: str


class FreeTextSchedule(BaseModel):
    kind: Literal["free_text"] = "free_text"
    text: str


class StructuredSchedule(BaseModel):
    kind: Literal["structured"] = "structured"
    days: Dict[str, DayHours]


Schedule = Annotated[Union[FreeTextSchedule, StructuredSchedule], Field(discriminator="kind")]
_schedule_adapter = TypeAdapter(Schedule)


def parse_schedule(value: Any) -> Optional[Union[FreeTextSchedule, StructuredSchedule]]:
    """Resolve a raw `workingHours` value (string or JSON object) into a Schedule."""
    if value is None or isinstance(value, (FreeTextSchedule, StructuredSchedule)):
        return value
    if isinstance(value, str):
        return FreeTextSchedule(text=value) if value.strip() else None
    if isinstance(value, dict):
        if value.get("kind") in ("free_text", "structured"):
            return _schedule_adapter.validate_python(value)
        try:
            return StructuredSchedule(days=value)
        except ValidationError:
            return FreeTextSchedule(text=json.dumps(value))
    return FreeTextSchedule(text=json.dumps(value))


def schedule_to_wire(schedule: Optional[Union[FreeTextSchedule, StructuredSchedule]]) -> Union[str, dict, None]:
    if schedule is None:
        return None
    if isinstance(schedule, FreeTextSchedule):
        return schedule.text
    return {day: hours.model_dump() for day, hours in schedule.days.items()}


def describe_schedule(schedule: Optional[Union[FreeTextSchedule, StructuredSchedule]]) -> str:
    if schedule is None:
        return "Not specified"
    if isinstance(schedule, FreeTextSchedule):
        return schedule.text
    return ", ".join(f"{day}: {hours.open}-{hours.close}" for day, hours in schedule.days.items())


# --- entities -----------------------------------------------------------------

class ReviewUser(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class BranchRef(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None


class Review(ApiModel):
    id: str
    branch_id: Optional[str] = None
    overall_rating: int = Field(ge=1, le=5)
    taste_rating: Optional[int] = Field(default=None, ge=1, le=5)
    service_rating: Optional[int] = Field(default=None, ge=1, le=5)
    ambience_rating: Optional[int] = Field(default=None, ge=1, le=5)
    cleanliness_rating: Optional[int] = Field(default=None, ge=1, le=5)
    value_rating: Optional[int] = Field(default=None, ge=1, le=5)
    visit_type: VisitType
    table_number: Optional[str] = None
    visit_date: Optional[str] = None
    what_liked: Optional[str] = None
    what_improve: Optional[str] = None
    would_recommend: Optional[str] = None
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    guest_email: Optional[str] = None
    user: Optional[ReviewUser] = None
    staff_reply: Optional[str] = None
    staff_reply_at: Optional[datetime] = None
    complaint_status: Optional[ComplaintStatus] = None
    admin_remarks: Optional[str] = None
    complaint_resolved_at: Optional[datetime] = None
    complaint_resolved_by: Optional[str] = None
    branch: Optional[BranchRef] = None
    created_at: datetime

    @model_validator(mode="after")
    def _default_complaint_status(self):
        if self.complaint_status is None and self.overall_rating <= 3:
            self.complaint_status = ComplaintStatus.OPEN
        return self

    @property
    def resolved_branch_id(self) -> Optional[str]:
        if self.branch_id:
            return self.branch_id
        return self.branch.id if self.branch else None


class Branch(ApiModel):
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    map_link: Optional[str] = None
    working_hours: Optional[Schedule] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @field_validator("working_hours", mode="before")
    @classmethod
    def _resolve_schedule(cls, value):
        schedule = parse_schedule(value)
        return schedule.model_dump() if schedule is not None else None

    @computed_field(alias="hoursLabel")
    @property
    def hours_label(self) -> str:
        return describe_schedule(self.working_hours)


class MenuItem(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: MenuCategory
    branch_id: Optional[str] = None
    branch: Optional[BranchRef] = None
    is_available: bool = True


class DashboardStats(ApiModel):
    total_branches: int = 0
    total_reviews: int = 0
    average_rating: float = 0.0


class AdminProfile(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ExportFile(BaseModel):
    filename: str
    content_type: str
    content: bytes


# --- forms (validated before any admin API call) -------------------------------

_BRANCH_LABELS = {
    "name": "Name",
    "address": "Address",
    "city": "City",
    "state": "State",
    "area": "Area",
    "phone": "Phone",
    "map_link": "Map Link",
    "working_hours": "Working Hours",
    "description": "Description",
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class LoginRequest(ApiModel):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def _required(cls, value: str, info):
        if not value.strip():
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return value


class BranchForm(ApiModel):
    name: str
    address: str
    city: str
    state: str
    area: str
    phone: str
    map_link: str
    working_hours: Schedule
    description: str
    is_active: bool = True

    @field_validator(*_BRANCH_LABELS, mode="before")
    @classmethod
    def _required(cls, value, info):
        if _is_blank(value):
            raise ValueError(f"{_BRANCH_LABELS[info.field_name]} is required")
        if info.field_name == "working_hours":
            schedule = parse_schedule(value)
            return schedule.model_dump() if schedule is not None else value
        return value.strip() if isinstance(value, str) else value

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True, mode="json", exclude={"working_hours"})
        payload["workingHours"] = schedule_to_wire(self.working_hours)
        return payload


class MenuForm(ApiModel):
    name: str
    description: Optional[str] = None
    price: float = Field(gt=0)
    category: MenuCategory = MenuCategory.SWEETS
    branch_id: str
    is_available: bool = True

    @field_validator("name", "branch_id", mode="before")
    @classmethod
    def _required(cls, value, info):
        if _is_blank(value):
            label = "Branch" if info.field_name == "branch_id" else "Name"
            raise ValueError(f"{label} is required")
        return value

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ProfileUpdate(ApiModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def _check_passwords(self):
        if self.new_password:
            if self.new_password != self.confirm_password:
                raise ValueError("New passwords do not match")
            if not self.current_password:
                raise ValueError("Current password is required to set a new password")
        return self

    def to_payload(self) -> dict:
        payload = {}
        if self.name:
            payload["name"] = self.name
        if self.phone:
            payload["phone"] = self.phone
        if self.new_password:
            payload["currentPassword"] = self.current_password
            payload["newPassword"] = self.new_password
        return payload


class ReplyRequest(ApiModel):
    staff_reply: str


class ComplaintUpdate(ApiModel):
    status: Optional[ComplaintStatus] = None
    remarks: Optional[str] = None


class ReviewUpdate(ApiModel):
    staff_reply: Optional[str] = None
    status: Optional[ComplaintStatus] = None
    remarks: Optional[str] = None


# --- dashboard views ------------------------------------------------------------

class ReviewRow(Review):
    display_name: str
    contact_phone: Optional[str] = None
    rating_tier: RatingTier
    complaint_editable: bool


class BranchOption(ApiModel):
    id: str
    name: str
    area: str


class MonthOption(ApiModel):
    value: str
    label: str


class ReviewSummary(ApiModel):
    total: int = 0
    average_rating: float = 0.0
    open_complaints: int = 0
    closed_complaints: int = 0
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class ReviewListView(ApiModel):
    rows: List[ReviewRow] = []
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1
    areas: List[str] = []
    branches: List[BranchOption] = []
    summary: Optional[ReviewSummary] = None
    error: Optional[str] = None


class DashboardView(ApiModel):
    stats: Optional[DashboardStats] = None
    areas: List[str] = []
    branches: List[BranchOption] = []
    error: Optional[str] = None


class BranchListView(ApiModel):
    branches: List[Branch] = []
    error: Optional[str] = None


class MenuGroup(ApiModel):
    category: str
    items: List[MenuItem]


class MenuListView(ApiModel):
    groups: List[MenuGroup] = []
    error: Optional[str] = None
