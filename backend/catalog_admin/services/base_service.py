import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generic, Mapping, Optional, Tuple, Type

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from catalog_admin.exceptions import ConstraintViolation, NotFoundError
from catalog_admin.repositories.base_repo import BaseRepository, ModelT, Page
from catalog_admin.utils.transactions import atomic

log = logging.getLogger(__name__)


class ResourceService(ABC, Generic[ModelT]):
    """CRUD operations a controller needs from the persistence side."""

    @abstractmethod
    def get_all(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        search: str = "",
        sort_by: str = "id",
        sort_order: str = "asc",
        per_page: int = 15,
        page: int = 1,
    ) -> Page[ModelT]:
        ...

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> ModelT:
        ...

    @abstractmethod
    def find(self, id) -> ModelT:
        ...

    @abstractmethod
    def update(self, entity: ModelT, data: Dict[str, Any]) -> ModelT:
        ...

    @abstractmethod
    def delete(self, entity: ModelT) -> bool:
        ...

    @abstractmethod
    def get_index_view(self) -> str:
        ...

    @abstractmethod
    def get_show_view(self) -> str:
        ...

    @abstractmethod
    def get_edit_view(self) -> str:
        ...


class BaseService(ResourceService[ModelT]):
    """
    ResourceService backed by a BaseRepository.

    Every write runs inside ``atomic`` so it either lands completely or not
    at all. Storage-level failures are surfaced as ConstraintViolation
    (integrity errors) or NotFoundError (the row disappeared underneath us).
    """

    repository_class: Type[BaseRepository]
    # columns with a UNIQUE constraint, used to name the field in ConstraintViolation
    unique_fields: Tuple[str, ...] = ()
    view_folder: Optional[str] = None

    def __init__(self, db: Session):
        self.db = db
        self.repo = self.repository_class(db)
        self.model = self.repo.model
        self.model_name = self.model.__name__
        self.base_view_folder = self.view_folder or self.model.__tablename__

    @contextmanager
    def _writing(self, ident=None):
        try:
            with atomic(self.db):
                yield
        except IntegrityError as e:
            raise self._constraint_violation(e) from e
        except StaleDataError as e:
            raise NotFoundError(self.model_name, ident) from e

    def _constraint_violation(self, error: IntegrityError) -> ConstraintViolation:
        detail = str(error.orig)
        for name in self.unique_fields:
            if name in detail:
                log.warning("Unique constraint on %s.%s rejected a write", self.model_name, name)
                return ConstraintViolation(f"The {name} has already been taken.", field=name)
        log.warning("Integrity error writing %s: %s", self.model_name, detail)
        return ConstraintViolation(f"The {self.model_name.lower()} violates a storage constraint.")

    def _identity(self, entity: ModelT):
        identity = inspect(entity).identity
        if identity is None:
            raise NotFoundError(self.model_name, None)
        return identity[0] if len(identity) == 1 else identity

    def _reload(self, ident) -> ModelT:
        current = self.db.get(self.model, ident, populate_existing=True)
        if current is None:
            raise NotFoundError(self.model_name, ident)
        return current

    def get_all(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        search: str = "",
        sort_by: str = "id",
        sort_order: str = "asc",
        per_page: int = 15,
        page: int = 1,
    ) -> Page[ModelT]:
        return self.repo.list(
            filters=filters,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            per_page=per_page,
            page=page,
        )

    def create(self, data: Dict[str, Any]) -> ModelT:
        with self._writing():
            entity = self.repo.add(self.model(**data))
        log.info("Created %s %s", self.model_name, entity.id)
        return entity

    def find(self, id) -> ModelT:
        entity = self.repo.get(id)
        if entity is None:
            raise NotFoundError(self.model_name, id)
        return entity

    def update(self, entity: ModelT, data: Dict[str, Any]) -> ModelT:
        ident = self._identity(entity)
        with self._writing(ident):
            current = self._reload(ident)
            for key, value in data.items():
                setattr(current, key, value)
            self.db.flush()
        log.info("Updated %s %s", self.model_name, ident)
        return current

    def delete(self, entity: ModelT) -> bool:
        ident = self._identity(entity)
        with self._writing(ident):
            self.repo.remove(self._reload(ident))
        log.info("Deleted %s %s", self.model_name, ident)
        return True

    def get_index_view(self) -> str:
        return f"{self.base_view_folder}.index"

    def get_show_view(self) -> str:
        return f"{self.base_view_folder}.show"

    def get_edit_view(self) -> str:
        return f"{self.base_view_folder}.edit"
