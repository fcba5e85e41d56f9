"""Repositories wrapping the `works` and `admin` collections."""

import logging
from typing import Optional, Tuple, Union

import pydantic
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, normalize_id, to_object_id, utcnow
from errors import NotFound, UpstreamError, ValidationError
from gallery import page_count
from schemas import EMAIL_RE, PHONE_RE, AdminSettings, ImageAsset, WorkCreate, WorkItem, WorkPage

logger = logging.getLogger(__name__)

WORKS = "works"
ADMIN = "admin"
ADMIN_TYPE = "admin"


def _validation_message(exc: pydantic.ValidationError) -> ValidationError:
    fields = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "body"
        fields.setdefault(loc, err["msg"])
    missing = [name for name in ("title", "category", "description") if name in fields]
    if missing:
        message = "Missing or invalid fields (%s)" % ", ".join(missing)
    else:
        message = "Invalid work: " + "; ".join(f"{k}: {v}" for k, v in fields.items())
    return ValidationError(message, fields=fields)


class WorkRepository:
    """Paginated gallery listing plus single-item create/fetch/delete."""

    def __init__(self, db: Database) -> None:
        self.collection = db[WORKS]
        self.db = db

    def list(self, page: int = 1, limit: int = 5) -> WorkPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers")
        skip = (page - 1) * limit
        try:
            total = self.collection.count_documents({})
            docs = list(
                self.collection.find({}).sort("createdAt", DESCENDING).skip(skip).limit(limit)
            ) if skip < total else []
        except PyMongoError as exc:
            raise UpstreamError("Failed to fetch works") from exc
        return WorkPage(
            items=[self._to_item(doc) for doc in docs],
            total=total,
            page=page,
            total_pages=page_count(total, limit),
        )

    def get_by_id(self, work_id: str) -> WorkItem:
        oid = to_object_id(work_id)
        try:
            doc = self.collection.find_one({"_id": oid})
        except PyMongoError as exc:
            raise UpstreamError("Failed to fetch work") from exc
        if doc is None:
            raise NotFound("Work not found")
        return self._to_item(doc)

    def create(self, fields: Union[WorkCreate, dict]) -> WorkItem:
        if isinstance(fields, dict):
            try:
                fields = WorkCreate.model_validate(fields)
            except pydantic.ValidationError as exc:
                raise _validation_message(exc)
        doc = create_document(self.db, WORKS, fields.model_dump())
        logger.info("Created work %s (%s)", doc["_id"], fields.title)
        return self._to_item(doc)

    def delete(self, work_id: str) -> bool:
        oid = to_object_id(work_id)
        try:
            result = self.collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            raise UpstreamError("Failed to delete work") from exc
        if result.deleted_count == 0:
            raise NotFound("Work not found")
        logger.info("Deleted work %s", work_id)
        return True

    @staticmethod
    def _to_item(doc: dict) -> WorkItem:
        return WorkItem.model_validate(normalize_id(doc))


class AdminSettingsRepository:
    """The singleton contact/banner document, keyed on `type: "admin"`."""

    def __init__(self, db: Database) -> None:
        self.collection = db[ADMIN]

    def get(self) -> AdminSettings:
        try:
            doc = self.collection.find_one({"type": ADMIN_TYPE})
        except PyMongoError as exc:
            raise UpstreamError("Failed to fetch admin details") from exc
        if doc is None:
            return AdminSettings()
        return self._to_settings(doc)

    @staticmethod
    def check_contact(email: str, phone: str) -> Tuple[str, str]:
        """Return trimmed email/phone or raise when either is missing or malformed."""
        email = (email or "").strip()
        phone = (phone or "").strip()
        if not email or not phone:
            raise ValidationError("Email and phone are required")
        fields = {}
        if not EMAIL_RE.match(email):
            fields["email"] = "Invalid email format"
        if not PHONE_RE.match(phone):
            fields["phone"] = "Invalid phone number format"
        if fields:
            raise ValidationError("; ".join(fields.values()), fields=fields)
        return email, phone

    def update(self, email: str, phone: str, banner_image: Optional[ImageAsset] = None) -> AdminSettings:
        email, phone = self.check_contact(email, phone)

        changes = {"email": email, "phone": phone, "updatedAt": utcnow()}
        # An omitted banner keeps whatever is already stored.
        if banner_image is not None:
            changes["bannerImage"] = banner_image.model_dump()
        try:
            self.collection.update_one({"type": ADMIN_TYPE}, {"$set": changes}, upsert=True)
            doc = self.collection.find_one({"type": ADMIN_TYPE})
        except PyMongoError as exc:
            raise UpstreamError("Failed to update admin details") from exc
        logger.info("Updated admin details (banner replaced: %s)", banner_image is not None)
        return self._to_settings(doc)

    @staticmethod
    def _to_settings(doc: dict) -> AdminSettings:
        return AdminSettings.model_validate(
            {
                "email": doc.get("email", ""),
                "phone": doc.get("phone", ""),
                "bannerImage": doc.get("bannerImage"),
                "updatedAt": doc.get("updatedAt"),
            }
        )
