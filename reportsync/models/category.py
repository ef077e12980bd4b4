from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from reportsync.core.enums import ReportPriority
from reportsync.models.common import SyncBaseModel


class CustomField(SyncBaseModel):
    id: str
    name: str
    required: bool = False


class Category(SyncBaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = "category"
    color: str = "#607D8B"
    active: bool = True
    order: int = 0

    custom_fields: List[CustomField] = Field(default_factory=list)
    requires_location: bool = False
    requires_photo: bool = False
    expected_response_hours: Optional[int] = None
    priority: Optional[ReportPriority] = None

    # display only, filled by the directory on sync
    emoji: Optional[str] = None


class CategorySnapshot(SyncBaseModel):
    id: str
    name: str
    description: str = ""
    active: bool = True


UNKNOWN_CATEGORY_NAME = "Unknown category"


def snapshot_of(category: Optional[Category], category_id: str) -> CategorySnapshot:
    if category is None:
        return CategorySnapshot(
            id=category_id,
            name=UNKNOWN_CATEGORY_NAME,
            description="Category not found",
            active=True,
        )
    return CategorySnapshot(
        id=category.id,
        name=category.name,
        description=category.description or "No description",
        active=category.active,
    )


DEFAULT_CATEGORIES: List[Category] = [
    Category(
        id="default-1",
        name="Infrastructure",
        description="Streets, sidewalks, bridges and other public works",
        icon="build",
        color="#FF6B35",
        order=1,
    ),
    Category(
        id="default-2",
        name="Transport",
        description="Public transport, traffic lights and road signs",
        icon="directions-car",
        color="#004E89",
        order=2,
    ),
    Category(
        id="default-3",
        name="Environment",
        description="Pollution, litter and green spaces",
        icon="eco",
        color="#2ECC71",
        order=3,
    ),
    Category(
        id="default-4",
        name="Safety",
        description="Public safety and street lighting",
        icon="security",
        color="#E74C3C",
        order=4,
    ),
    Category(
        id="default-5",
        name="Public Services",
        description="Water, power, gas and garbage collection",
        icon="lightbulb",
        color="#F39C12",
        order=5,
    ),
    Category(
        id="default-6",
        name="Health",
        description="Public health services and health centers",
        icon="local-hospital",
        color="#9B59B6",
        order=6,
    ),
]
