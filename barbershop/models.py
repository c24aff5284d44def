# barbershop/models.py

from typing import Optional
from datetime import datetime, date as Date

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: str = ""
    password_hash: str
    role: str = "user"  # admin or user
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str
    duration: int  # minutes
    price: float
    category: str = Field(index=True)
    image: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Schedule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    day_of_week: int = Field(index=True)  # 0=Sunday ... 6=Saturday
    start_time: str  # HH:MM
    end_time: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Unavailability(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    date: Date = Field(index=True)
    start_time: str
    end_time: str
    reason: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    date: Date = Field(index=True)
    start_time: str
    end_time: str
    status: str = Field(default="pending", index=True)
    notes: Optional[str] = None
    total_price: float
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class GalleryPhoto(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    category: str = Field(default="cuts", index=True)
    image_url: str
    likes: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
