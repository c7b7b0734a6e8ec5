"""
Transaction service: CRUD scoped to the authenticated user.
"""

from datetime import date
from typing import List, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from aggregation import aggregate
from errors import NotFoundError, ValidationError
from schemas import DashboardSummary, TransactionIn, TransactionOut
from stores import TransactionStore

logger = structlog.get_logger(__name__)


class TransactionService:
    def __init__(self, store: TransactionStore):
        self.store = store

    def list(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> List[TransactionOut]:
        docs = self.store.find(user_id, start_date=start_date, end_date=end_date, category=category)
        return [TransactionOut.from_document(d) for d in docs]

    def create(self, user_id: str, fields: Union[TransactionIn, dict]) -> TransactionOut:
        fields = parse_fields(fields)
        doc = self.store.insert(user_id, fields.to_document_fields())
        logger.info("transaction_created", user_id=user_id, transaction_id=str(doc["_id"]))
        return TransactionOut.from_document(doc)

    def get(self, user_id: str, transaction_id: str) -> TransactionOut:
        doc = self.store.find_one(user_id, transaction_id)
        if doc is None:
            raise NotFoundError()
        return TransactionOut.from_document(doc)

    def update(self, user_id: str, transaction_id: str, fields: Union[TransactionIn, dict]) -> TransactionOut:
        fields = parse_fields(fields)
        doc = self.store.replace(user_id, transaction_id, fields.to_document_fields())
        if doc is None:
            raise NotFoundError()
        logger.info("transaction_updated", user_id=user_id, transaction_id=transaction_id)
        return TransactionOut.from_document(doc)

    def delete(self, user_id: str, transaction_id: str) -> None:
        if not self.store.delete(user_id, transaction_id):
            raise NotFoundError()
        logger.info("transaction_deleted", user_id=user_id, transaction_id=transaction_id)

    def summary(self, user_id: str) -> DashboardSummary:
        docs = self.store.find_all(user_id)
        return aggregate(TransactionOut.from_document(d) for d in docs)


def parse_fields(data: Union[TransactionIn, dict]) -> TransactionIn:
    """Validate raw transaction fields, raising ValidationError on missing or malformed ones."""
    if isinstance(data, TransactionIn):
        return data
    try:
        return TransactionIn.model_validate(data)
    except PydanticValidationError as exc:
        names = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ValidationError("Invalid fields: " + ", ".join(names) if names else None)
