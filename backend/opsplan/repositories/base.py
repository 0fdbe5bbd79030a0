"""
Generic Repository — Repository Pattern (GoF)

Concrete repositories inherit CRUD and add their own query builders.
``create``/``update``/``delete`` commit immediately; ``add`` only stages the
row so a service can group several writes into one commit.
"""
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.orm import Session

from opsplan.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    def __init__(self, model: Type[ModelT], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def get_by_ids(self, ids: Sequence[int]) -> List[ModelT]:
        if not ids:
            return []
        return self.db.query(self.model).filter(self.model.id.in_(list(ids))).all()

    def get_all(self) -> List[ModelT]:
        return self.db.query(self.model).order_by(self.model.id).all()

    def add(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        self.db.flush()
        return obj

    def create(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj: ModelT, updates: Dict[str, Any]) -> ModelT:
        for key, value in updates.items():
            setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: ModelT) -> None:
        self.db.delete(obj)
        self.db.commit()
