from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from bson.errors import BSONError
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ..exceptions import PersistenceError
from ..models.blood_group import BloodGroup
from ..models.donor import DonorCreate, DonorSummary
from ..utils.logging import log_db_error

LOOKUP_LIMIT = 10
SUMMARY_PROJECTION: Dict[str, int] = {
    "name": 1,
    "age": 1,
    "city": 1,
    "state": 1,
    "bloodGroup": 1,
    "createdAt": 1,
}
NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def serialize_id(document: Dict[str, Any]) -> Dict[str, Any]:
    if "_id" in document:
        document["_id"] = str(document["_id"])
    return document


class DonorRepository:
    """Stores donor registrations in a MongoDB collection.

    Records are written once and never updated. ``clock`` supplies the
    ``createdAt`` stamp.
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.collection = collection
        self.clock = clock

    async def ensure_indexes(self) -> None:
        try:
            await self.collection.create_index([("createdAt", DESCENDING)])
            await self.collection.create_index([("bloodGroup", ASCENDING), ("createdAt", DESCENDING)])
        except PyMongoError as exc:
            log_db_error("donors.ensure_indexes", exc)
            raise PersistenceError("Unable to prepare donor indexes", operation="donors.ensure_indexes") from exc

    async def create(self, donor: DonorCreate) -> str:
        document = {
            **donor.model_dump(by_alias=True, exclude_none=True),
            "createdAt": self.clock(),
        }
        try:
            result = await self.collection.insert_one(document)
        except (PyMongoError, BSONError, UnicodeEncodeError) as exc:
            log_db_error("donors.create", exc)
            raise PersistenceError("Unable to store donor", operation="donors.create") from exc
        donor_id = str(result.inserted_id)
        logger.info("Registered donor {} ({})", donor_id, donor.blood_group)
        return donor_id

    async def find_by_blood_group(self, group: BloodGroup, limit: int = LOOKUP_LIMIT) -> List[DonorSummary]:
        """Return the most recently registered donors of ``group``, newest first."""
        cursor = (
            self.collection.find({"bloodGroup": group.value}, SUMMARY_PROJECTION)
            .sort(NEWEST_FIRST)
            .limit(limit)
        )
        try:
            documents = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            log_db_error("donors.find_by_blood_group", exc)
            raise PersistenceError(
                "Unable to fetch donors", operation="donors.find_by_blood_group"
            ) from exc
        return [DonorSummary(**serialize_id(document)) for document in documents]
