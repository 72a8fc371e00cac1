"""
SQLAlchemy implementation of the Base Repository.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy.orm import Session

from app.domain.repositories.base import BaseRepository
from app.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


def _as_dict(obj_in: Any, exclude_unset: bool = False) -> dict:
    """Accept either a pydantic model or a plain dict."""
    if hasattr(obj_in, "model_dump"):
        return obj_in.model_dump(exclude_unset=exclude_unset)
    return dict(obj_in)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Generic repository implementation for SQLAlchemy models."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def list(self, skip: int = 0, limit: int = 100) -> List[ModelType]:
        return self.db.query(self.model).offset(skip).limit(limit).all()

    def create(self, obj_in: Any) -> ModelType:
        db_obj = self.model(**_as_dict(obj_in))
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def create_many(self, objs_in: List[Any]) -> List[ModelType]:
        db_objs = [self.model(**_as_dict(obj_in)) for obj_in in objs_in]
        if not db_objs:
            return []
        try:
            self.db.add_all(db_objs)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for db_obj in db_objs:
            self.db.refresh(db_obj)
        return db_objs

    def update(self, db_obj: ModelType, obj_in: Any) -> ModelType:
        update_data = _as_dict(obj_in, exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def delete(self, id: int) -> Optional[ModelType]:
        obj = self.db.get(self.model, id)
        if obj:
            self.db.delete(obj)
            self.db.commit()
        return obj

    def delete_all(self) -> int:
        result = self.db.execute(sa_delete(self.model))
        self.db.commit()
        return result.rowcount or 0

    def rollback(self) -> None:
        self.db.rollback()
