"""
Credential store and transaction store.

Every TransactionStore method takes the owner's user id and puts it in the
query filter next to the record id, so a record owned by someone else
behaves exactly like a record that does not exist.
"""

from datetime import date
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, to_object_id, utcnow
from errors import ConflictError
from schemas import Transaction, User, to_storage_date

USER_COLLECTION = "user"
TRANSACTION_COLLECTION = "transaction"


class UserStore:
    def __init__(self, db: Database):
        self.collection = db[USER_COLLECTION]
        self._db = db

    def ensure_indexes(self) -> None:
        self.collection.create_index([("email", ASCENDING)], unique=True)

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email})

    def find_by_id(self, user_id: str) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def insert(self, user: User) -> str:
        try:
            return create_document(self._db, USER_COLLECTION, user)
        except DuplicateKeyError:
            raise ConflictError()


class TransactionStore:
    def __init__(self, db: Database):
        self.collection = db[TRANSACTION_COLLECTION]
        self._db = db

    def ensure_indexes(self) -> None:
        self.collection.create_index([("user_id", ASCENDING), ("date", DESCENDING)])

    def find(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> List[dict]:
        """Owned transactions matching every given filter, newest first. Date bounds are inclusive."""
        query = {"user_id": user_id}

        date_range = {}
        if start_date is not None:
            date_range["$gte"] = to_storage_date(start_date)
        if end_date is not None:
            date_range["$lte"] = to_storage_date(end_date)
        if date_range:
            query["date"] = date_range

        if category:
            query["category"] = category

        return list(self.collection.find(query).sort("date", DESCENDING))

    def find_all(self, user_id: str) -> List[dict]:
        # Natural order; the dashboard keeps first-seen ordering.
        return list(self.collection.find({"user_id": user_id}))

    def find_one(self, user_id: str, transaction_id: str) -> Optional[dict]:
        oid = to_object_id(transaction_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid, "user_id": user_id})

    def insert(self, user_id: str, fields: dict) -> dict:
        doc = Transaction(user_id=user_id, **fields)
        inserted_id = create_document(self._db, TRANSACTION_COLLECTION, doc)
        return self.collection.find_one({"_id": to_object_id(inserted_id)})

    def replace(self, user_id: str, transaction_id: str, fields: dict) -> Optional[dict]:
        oid = to_object_id(transaction_id)
        if oid is None:
            return None
        update = dict(fields)
        update["updated_at"] = utcnow()
        # Last write wins: there is no version field.
        return self.collection.find_one_and_update(
            {"_id": oid, "user_id": user_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, user_id: str, transaction_id: str) -> bool:
        oid = to_object_id(transaction_id)
        if oid is None:
            return False
        deleted = self.collection.find_one_and_delete({"_id": oid, "user_id": user_id})
        return deleted is not None
