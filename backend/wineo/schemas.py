"""Request bodies accepted by the HTTP API.

Every route validates its JSON body against one of these models before any
service call. Field names are snake_case in Python and camelCase on the wire.
Update models keep every field optional; services consult ``model_fields_set``
to tell an omitted field apart from an explicit ``null``.
"""
from __future__ import annotations

from typing import Any, Literal, Optional, TypeVar

from flask import request
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from wineo.errors import ValidationFailed

ListingType = Literal["sell", "rent"]
RentPeriod = Literal["hour", "day", "week", "month"]
Currency = Literal["GEL", "USD"]
PriceType = Literal["fixed", "negotiable"]
ListingStatus = Literal["active", "sold", "rented", "expired"]
FilterType = Literal["select", "range", "checkbox", "number", "text"]
UserType = Literal["physical", "business"]

MAX_UPLOAD_SLOTS = 20

M = TypeVar("M", bound="RequestModel")


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def provided(self, field_name: str) -> bool:
        return field_name in self.model_fields_set


def parse_body(model: type[M]) -> M:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationFailed("Request body must be a JSON object")
    return model.model_validate(data)


# auth

class RegisterRequest(RequestModel):
    email: EmailStr
    password: str = Field(default="", max_length=256)
    first_name: str = ""
    last_name: str = ""
    business_name: str = ""
    user_type: UserType = "physical"
    phone: str = Field(default="", max_length=32)


class LoginRequest(RequestModel):
    email: str = ""
    password: str = ""


class ProfileUpdateRequest(RequestModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    user_type: Optional[UserType] = None


# taxonomy

class CategoryCreateRequest(RequestModel):
    name: str = Field(max_length=100)
    slug: Optional[str] = None
    description: str = Field(default="", max_length=500)
    active: bool = True
    parent_id: Optional[str] = None


class CategoryUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, max_length=100)
    slug: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    active: Optional[bool] = None
    parent_id: Optional[str] = None


class RegionCreateRequest(RequestModel):
    label: str = Field(max_length=100)
    slug: Optional[str] = None


class RegionUpdateRequest(RequestModel):
    label: Optional[str] = Field(default=None, max_length=100)
    slug: Optional[str] = None


class CityCreateRequest(RequestModel):
    label: str = Field(max_length=100)
    region_id: str
    slug: Optional[str] = None


class CityUpdateRequest(RequestModel):
    label: Optional[str] = Field(default=None, max_length=100)
    region_id: Optional[str] = None
    slug: Optional[str] = None


class FilterCreateRequest(RequestModel):
    name: str = Field(max_length=100)
    type: FilterType
    category_id: str
    slug: Optional[str] = None
    options: Optional[list[str]] = None
    unit: str = Field(default="", max_length=20)
    apply_to_children: bool = False
    is_required: bool = False
    sort_order: int = 0
    is_active: bool = True


class FilterUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, max_length=100)
    type: Optional[FilterType] = None
    category_id: Optional[str] = None
    slug: Optional[str] = None
    options: Optional[list[str]] = None
    unit: Optional[str] = Field(default=None, max_length=20)
    apply_to_children: Optional[bool] = None
    is_required: Optional[bool] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


# listings

class CategorySnapshot(RequestModel):
    name: str
    slug: str


class LocationIn(RequestModel):
    region: str
    city: str


class AttributeIn(RequestModel):
    filter_id: str = ""
    value: Any = None


class ListingCreateRequest(RequestModel):
    title: str = Field(max_length=200)
    slug: Optional[str] = None
    description: str
    type: ListingType = "sell"
    category: CategorySnapshot
    category_id: Optional[str] = None
    attributes: list[AttributeIn] = Field(default_factory=list)
    price: Any = None
    currency: Currency = "GEL"
    price_type: PriceType = "fixed"
    rent_period: Optional[RentPeriod] = None
    images: list[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    specifications: dict[str, Any] = Field(default_factory=dict)
    location: LocationIn
    status: ListingStatus = "active"
    promotion_type: Any = None
    promotion_expires_at: Any = None
    seo_title: Optional[str] = Field(default=None, max_length=70)
    seo_description: Optional[str] = Field(default=None, max_length=160)
    temp_image_keys: list[str] = Field(default_factory=list, max_length=MAX_UPLOAD_SLOTS)


class ListingUpdateRequest(RequestModel):
    title: Optional[str] = Field(default=None, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ListingType] = None
    category: Optional[CategorySnapshot] = None
    category_id: Optional[str] = None
    attributes: Optional[list[AttributeIn]] = None
    price: Any = None
    currency: Optional[Currency] = None
    price_type: Optional[PriceType] = None
    rent_period: Optional[RentPeriod] = None
    images: Optional[list[str]] = None
    thumbnail: Optional[str] = None
    specifications: Optional[dict[str, Any]] = None
    location: Optional[LocationIn] = None
    status: Optional[ListingStatus] = None
    promotion_type: Any = None
    promotion_expires_at: Any = None
    seo_title: Optional[str] = Field(default=None, max_length=70)
    seo_description: Optional[str] = Field(default=None, max_length=160)
    temp_image_keys: Optional[list[str]] = Field(default=None, max_length=MAX_UPLOAD_SLOTS)


class UploadSlotsRequest(RequestModel):
    count: int = 1
