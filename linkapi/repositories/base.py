from abc import ABC
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Query, Session

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """Base repository; every public read returns pydantic schemas.

    Writes take commit=False when the caller owns the transaction. A failed
    flush rolls the session back before the error propagates.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _query(self) -> Query:
        # rows touched by bulk UPDATEs in this session are reloaded, not served stale
        return self.db.query(self.model_class).populate_existing()

    def _filtered(self, query: Query, filters: Optional[Dict[str, Any]]) -> Query:
        for key, value in (filters or {}).items():
            column = getattr(self.model_class, key, None)
            if column is not None:
                query = query.filter(column == value)
        return query

    def _instance(self, instance_id: Any) -> Optional[T]:
        return (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, "id") == instance_id)
            .first()
        )

    def _persist(self, instance: T, commit: bool) -> None:
        self.db.add(instance)
        try:
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(item) for item in model_instances]

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        return self.get_by_field("id", id)

    def get_by_field(self, field_name: str, value: Any) -> Optional[SchemaType]:
        query = self._filtered(self._query(), {field_name: value})
        return self._to_schema(query.first())

    def find_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[SchemaType]:
        query = self._filtered(self._query(), filters)
        if order_by and hasattr(self.model_class, order_by):
            query = query.order_by(getattr(self.model_class, order_by))
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self._to_schemas(query.all())

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        return self._filtered(self.db.query(self.model_class), filters).count()

    def create(self, commit: bool = True, **kwargs) -> Optional[SchemaType]:
        instance = self.model_class(**kwargs)
        self._persist(instance, commit)
        return self._to_schema(instance)

    def update(
        self, instance_id: Any, commit: bool = True, **kwargs
    ) -> Optional[SchemaType]:
        instance = self._instance(instance_id)
        if instance is None:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        self._persist(instance, commit)
        return self._to_schema(instance)

    def delete(self, instance_id: Any, commit: bool = True) -> bool:
        instance = self._instance(instance_id)
        if instance is None:
            return False

        try:
            self.db.delete(instance)
            self.db.flush()
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True
