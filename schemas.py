"""
Database Schemas for the Portfolio Gallery

Collections:

- works  -> WorkItem   (gallery entries, newest first by createdAt)
- admin  -> AdminSettings (single document with type="admin")

Field names on the wire are camelCase; Python attributes are snake_case.
"""

import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Category = Literal["photography", "digital-art", "illustration"]

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 30
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 90

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s-]{10,}$")


class ImageAsset(BaseModel):
    url: str = Field(..., min_length=1)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


# Works
class WorkCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    category: Category
    description: str = Field(..., min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH)
    image: ImageAsset  # descriptor returned by /api/upload


class WorkItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    category: str
    description: str
    image: ImageAsset
    created_at: datetime = Field(..., alias="createdAt")


class WorkPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[WorkItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "works"),
        serialization_alias="works",
    )
    total: int = 0
    page: int = 1
    total_pages: int = Field(0, alias="totalPages")


# Admin
class AdminSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = ""
    phone: str = ""
    banner_image: Optional[ImageAsset] = Field(None, alias="bannerImage")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


# Contact
class ContactMessage(BaseModel):
    name: str = ""
    email: str = ""
    subject: Optional[str] = None
    message: str = ""
