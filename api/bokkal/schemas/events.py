from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bokkal.core.catalog import CATEGORY_SUBCATEGORIES, TAGS, CategoryId, City, EventStatus, EventType


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    title_en: str | None = None
    title_wo: str | None = None
    description: str = Field(min_length=1)
    description_en: str | None = None
    description_wo: str | None = None
    event_type: EventType | None = None
    category: CategoryId
    subcategory: str = Field(min_length=1)
    tags: list[str] | None = None
    location_name: str = Field(min_length=1)
    location_city: City
    location_lat: float | None = Field(default=None, ge=-90, le=90)
    location_lng: float | None = Field(default=None, ge=-180, le=180)
    start_date: datetime
    end_date: datetime | None = None
    price: str | None = None
    target_audience: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_whatsapp: str | None = None
    image_url: str | None = None

    @field_validator(
        "title_en",
        "title_wo",
        "description_en",
        "description_wo",
        "price",
        "target_audience",
        "contact_phone",
        "contact_email",
        "contact_whatsapp",
        "image_url",
    )
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("tags")
    @classmethod
    def _known_tags(cls, value: list[str] | None) -> list[str] | None:
        if not value:
            return None
        unknown = sorted(set(value) - TAGS)
        if unknown:
            raise ValueError(f"unknown tags: {unknown}")
        return list(dict.fromkeys(value))

    @field_validator("contact_email")
    @classmethod
    def _plausible_email(cls, value: str | None) -> str | None:
        if value and ("@" not in value or value.startswith("@") or value.endswith("@")):
            raise ValueError("contact_email must be an email address")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "EventCreateRequest":
        if self.subcategory not in CATEGORY_SUBCATEGORIES[self.category]:
            raise ValueError(f"subcategory {self.subcategory!r} is not part of category {self.category!r}")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RejectRequest(BaseModel):
    reason: str | None = None


class EventOut(BaseModel):
    id: str
    user_id: str
    title: str
    title_en: str | None = None
    title_wo: str | None = None
    description: str
    description_en: str | None = None
    description_wo: str | None = None
    event_type: str
    category: str | None = None
    subcategory: str | None = None
    tags: list[str] | None = None
    location_name: str
    location_city: str
    location_lat: float | None = None
    location_lng: float | None = None
    start_date: datetime
    end_date: datetime | None = None
    price: str | None = None
    target_audience: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_whatsapp: str | None = None
    image_url: str | None = None
    status: EventStatus
    rejection_reason: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    created_at: datetime
    updated_at: datetime


class EventPageOut(BaseModel):
    data: list[EventOut] = Field(default_factory=list)
    count: int
    page: int
    page_size: int
    total_pages: int


class MyEventsOut(BaseModel):
    data: list[EventOut] = Field(default_factory=list)
    pending_count: int
    approved_count: int
    rejected_count: int
