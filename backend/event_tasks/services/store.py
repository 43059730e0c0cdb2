import logging
from contextlib import contextmanager
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from event_tasks.core.errors import DomainError, translate_storage_error

logger = logging.getLogger(__name__)


class EntityStore:
    """Key-addressed access to the ORM rows of one request-scoped session.

    Reads run outside any explicit transaction; every write made through
    ``add``/``delete``/``delete_where`` must happen inside ``transaction()``,
    which commits the whole batch or rolls all of it back.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, model, id):
        try:
            return self.db.get(model, id)
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def get_many(self, model, ids: Iterable) -> list:
        keys = list(ids)
        if not keys:
            return []
        try:
            return self.db.query(model).filter(model.id.in_(keys)).all()
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def first_where(self, model, *criteria) -> Optional[object]:
        try:
            return self.db.query(model).filter(*criteria).first()
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def list_where(self, model, *criteria, order_by: Iterable = ()) -> list:
        try:
            return self.db.query(model).filter(*criteria).order_by(*order_by).all()
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def select_where(self, columns: Iterable, *criteria) -> list[tuple]:
        try:
            return [tuple(row) for row in self.db.query(*columns).filter(*criteria).all()]
        except Exception as exc:
            raise translate_storage_error(exc) from exc

    def add(self, row):
        self.db.add(row)
        return row

    def add_all(self, rows: Iterable):
        self.db.add_all(list(rows))

    def delete(self, row):
        self.db.delete(row)

    def delete_where(self, model, *criteria) -> int:
        return self.db.query(model).filter(*criteria).delete(synchronize_session="fetch")

    def flush(self):
        self.db.flush()

    @contextmanager
    def transaction(self):
        try:
            yield self
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except Exception as exc:
            self.db.rollback()
            logger.debug("Transaction rolled back: %s", exc.__class__.__name__)
            raise translate_storage_error(exc) from exc
