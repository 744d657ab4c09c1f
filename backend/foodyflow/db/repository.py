"""
Repository over the SQLAlchemy session.

Services never talk to the Session for writes directly: they go through a
``Repository`` so that every storage failure surfaces as ``StorageError`` and
every state-changing operation runs inside one ``transaction()``.

Usage:
    repo = Repository(db)
    with repo.transaction():
        product = repo.load_product(product_id, for_update=True)
        repo.append_movement(movement)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodyflow.core.errors import EntityNotFound, FoodyFlowError, StorageError, UnknownProduct
from foodyflow.models.order import Order
from foodyflow.models.product import Product
from foodyflow.models.stock import StockMovement

logger = logging.getLogger(__name__)

_DEPTH_KEY = "foodyflow.tx_depth"
_AFTER_COMMIT_KEY = "foodyflow.after_commit"


class Repository:
    """Persistence collaborator used by the domain services."""

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit on success, roll back everything on any error.

        Nested calls, from any Repository bound to the same session, join the
        outermost transaction. Callbacks registered with ``after_commit`` run
        once the outermost level has committed and are dropped on rollback.
        """
        info = self._session.info
        info[_DEPTH_KEY] = info.get(_DEPTH_KEY, 0) + 1
        outermost = info[_DEPTH_KEY] == 1
        try:
            yield self._session
            if outermost:
                self._session.commit()
        except FoodyFlowError:
            if outermost:
                self._rollback()
            raise
        except SQLAlchemyError as e:
            if outermost:
                self._rollback()
            logger.error(f"Storage failure, transaction rolled back: {e}")
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e
        except Exception:
            if outermost:
                self._rollback()
            raise
        finally:
            info[_DEPTH_KEY] -= 1

        if outermost:
            for callback in info.pop(_AFTER_COMMIT_KEY, []):
                callback()

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` after the enclosing transaction commits.

        Outside a transaction it runs straight away. The same callable is
        queued at most once per transaction.
        """
        info = self._session.info
        if info.get(_DEPTH_KEY, 0) == 0:
            callback()
            return
        pending = info.setdefault(_AFTER_COMMIT_KEY, [])
        if callback not in pending:
            pending.append(callback)

    def _rollback(self) -> None:
        self._session.info.pop(_AFTER_COMMIT_KEY, None)
        self._session.rollback()

    def flush(self) -> None:
        try:
            self._session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e

    def add(self, entity) -> None:
        self._session.add(entity)

    def delete(self, entity) -> None:
        self._session.delete(entity)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def find_product(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        query = select(Product).where(Product.id == product_id)
        if for_update:
            query = query.with_for_update()
        return self._scalar(query)

    def load_product(self, product_id: int, for_update: bool = False) -> Product:
        product = self.find_product(product_id, for_update=for_update)
        if product is None:
            raise UnknownProduct(product_id)
        return product

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Lock product rows in ascending id order and return those found."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        query = select(Product).where(Product.id.in_(ids)).order_by(Product.id).with_for_update()
        try:
            rows = self._session.scalars(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e
        return {p.id: p for p in rows}

    def save_product(self, product: Product) -> Product:
        self._session.add(product)
        self.flush()
        return product

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def load_order(self, order_id: int, for_update: bool = False) -> Order:
        query = select(Order).where(Order.id == order_id)
        if for_update:
            query = query.with_for_update()
        order = self._scalar(query)
        if order is None:
            raise EntityNotFound("Order", order_id)
        return order

    def save_order(self, order: Order) -> Order:
        self._session.add(order)
        self.flush()
        return order

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def append_movement(self, movement: StockMovement) -> StockMovement:
        self._session.add(movement)
        self.flush()
        return movement

    def list_movements(self, product_id: Optional[int] = None) -> Sequence[StockMovement]:
        query = select(StockMovement)
        if product_id is not None:
            query = query.where(StockMovement.product_id == product_id)
        query = query.order_by(StockMovement.ts.desc(), StockMovement.id.desc())
        try:
            return self._session.scalars(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e

    # ------------------------------------------------------------------
    # Generic
    # ------------------------------------------------------------------

    def get(self, model, entity_id: int, entity_name: Optional[str] = None):
        entity = self._scalar(select(model).where(model.id == entity_id))
        if entity is None:
            raise EntityNotFound(entity_name or model.__name__, entity_id)
        return entity

    def _scalar(self, query):
        try:
            return self._session.scalar(query)
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e
