# barbershop/schemas.py

from datetime import datetime, date as Date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from barbershop.core import InvalidTimeError, normalize_time, parse_time


class Schema(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TimeRangeSchema(Schema):
    """Normalizes "HH:MM" fields and requires start_time < end_time when both are set."""

    @field_validator("start_time", "end_time", check_fields=False)
    @classmethod
    def normalize_times(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            return normalize_time(value)
        except InvalidTimeError as exc:
            raise ValueError(str(exc))

    @model_validator(mode="after")
    def check_order(self):
        start_time = getattr(self, "start_time", None)
        end_time = getattr(self, "end_time", None)
        if start_time and end_time and parse_time(start_time) >= parse_time(end_time):
            raise ValueError("startTime must be earlier than endTime")
        return self


# ---------- Users ----------

class Token(BaseModel):
    # OAuth2 clients expect these exact keys
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    admin = "admin"
    user = "user"


class UserCreate(Schema):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=254)
    phone: str = ""
    password: str = Field(min_length=8, max_length=72)


class UserPublic(Schema):
    id: int
    name: str
    email: str
    phone: str
    role: UserRole
    is_active: bool
    created_at: datetime


class AuthResponse(Token):
    user: UserPublic


class ProfileUpdate(Schema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None


class UserUpdate(Schema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserStats(Schema):
    total_users: int
    active_users: int
    admin_users: int
    recent_users: int
    inactive_users: int


# ---------- Services ----------

class ServiceCategory(str, Enum):
    haircut = "haircut"
    beard = "beard"
    combo = "combo"
    treatment = "treatment"


class ServiceCreate(Schema):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    duration: int = Field(ge=15, le=240)
    price: float = Field(ge=0)
    category: ServiceCategory
    image: str = ""


class ServiceUpdate(Schema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    duration: Optional[int] = Field(default=None, ge=15, le=240)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[ServiceCategory] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None


class ServicePublic(Schema):
    id: int
    name: str
    description: str
    duration: int
    price: float
    category: ServiceCategory
    image: str
    is_active: bool


class ServiceSummary(Schema):
    id: int
    name: str
    duration: int
    price: float


# ---------- Schedules ----------

class ScheduleCreate(TimeRangeSchema):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sunday ... 6=Saturday
    start_time: str
    end_time: str


class ScheduleUpdate(TimeRangeSchema):
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_active: Optional[bool] = None


class SchedulePublic(Schema):
    id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool


# ---------- Unavailabilities ----------

class UnavailabilityCreate(TimeRangeSchema):
    date: Date
    start_time: str
    end_time: str
    reason: str = Field(min_length=1, max_length=200)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("reason is required")
        return value


class UnavailabilityUpdate(TimeRangeSchema):
    date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = Field(default=None, min_length=1, max_length=200)
    is_active: Optional[bool] = None


class UnavailabilityPublic(Schema):
    id: int
    date: Date
    start_time: str
    end_time: str
    reason: str
    is_active: bool


# ---------- Appointments ----------

class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class AppointmentCreate(TimeRangeSchema):
    service_id: int
    date: Date
    start_time: str
    notes: Optional[str] = Field(default=None, max_length=500)


class StatusUpdate(Schema):
    status: AppointmentStatus


class CancelRequest(Schema):
    reason: Optional[str] = Field(default=None, max_length=200)


class UserSummary(Schema):
    id: int
    name: str
    email: str
    phone: str


class AppointmentPublic(Schema):
    id: int
    user_id: int
    service_id: int
    date: Date
    start_time: str
    end_time: str
    status: AppointmentStatus
    notes: Optional[str] = None
    total_price: float
    created_at: datetime
    updated_at: datetime
    service: Optional[ServiceSummary] = None
    user: Optional[UserSummary] = None


class AvailabilityResponse(Schema):
    date: Date
    available_slots: List[str]


class BlockedWindow(Schema):
    start_time: str
    end_time: str
    reason: str


class DateCheckResponse(Schema):
    date: Date
    is_working_day: bool
    has_unavailability: bool
    is_completely_blocked: bool
    has_available_slots: bool
    unavailabilities: List[BlockedWindow]


# ---------- Gallery ----------

class GalleryCategory(str, Enum):
    cuts = "cuts"
    beards = "beards"
    treatments = "treatments"
    styles = "styles"


class GalleryPhotoCreate(Schema):
    title: str = Field(min_length=1, max_length=200)
    category: GalleryCategory = GalleryCategory.cuts
    image_url: str = Field(min_length=1)


class GalleryPhotoUpdate(Schema):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[GalleryCategory] = None
    image_url: Optional[str] = Field(default=None, min_length=1)


class GalleryPhotoPublic(Schema):
    id: int
    title: str
    category: GalleryCategory
    image_url: str
    likes: int
    is_active: bool
    created_at: datetime
