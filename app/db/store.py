"""
Storage seam for the provenance registry.

Services never touch a database session directly; they receive a
ProvenanceStore and work against its keyed stores:

    stakeholders  principal -> Stakeholder
    products      handle    -> Product
    journal       handle    -> ordered TrackingRecord list
    registry      admin principal + total product count
    events        append-only notification outbox

Every mutating service call runs inside `store.transaction()`, and does its
precondition reads there too. Transactions on one store are serialized, and
`for_update=True` reads lock the row until the transaction ends. Leaving the
block normally commits; an exception discards every write made inside it.
"""
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Any

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.errors import DuplicateProduct, InvalidTransition, ProvenanceError
from app.db.schema import (
    Stakeholder, Product, TrackingRecord, RegistryState, ProvenanceEvent
)


class ProvenanceStore(ABC):

    # Stakeholders

    @abstractmethod
    def get_stakeholder(self, principal: str) -> Optional[Stakeholder]: ...

    def has_stakeholder(self, principal: str) -> bool:
        return self.get_stakeholder(principal) is not None

    @abstractmethod
    def put_stakeholder(self, stakeholder: Stakeholder) -> None: ...

    @abstractmethod
    def delete_stakeholder(self, principal: str) -> None: ...

    @abstractmethod
    def list_stakeholders(self) -> List[Stakeholder]: ...

    # Products

    @abstractmethod
    def get_product(self, handle: str, for_update: bool = False) -> Optional[Product]: ...

    def has_product(self, handle: str) -> bool:
        return self.get_product(handle) is not None

    @abstractmethod
    def put_product(self, product: Product) -> None: ...

    # Journal

    @abstractmethod
    def get_journey(self, handle: str) -> List[TrackingRecord]: ...

    @abstractmethod
    def journey_length(self, handle: str) -> int: ...

    @abstractmethod
    def append_record(self, record: TrackingRecord) -> None: ...

    # Registry scalars

    @abstractmethod
    def get_registry_state(self, for_update: bool = False) -> Optional[RegistryState]: ...

    @abstractmethod
    def put_registry_state(self, state: RegistryState) -> None: ...

    # Notification outbox

    @abstractmethod
    def add_event(self, event: ProvenanceEvent) -> None: ...

    @abstractmethod
    def list_events(self, after_id: int = 0, limit: int = 100) -> List[ProvenanceEvent]: ...

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]: ...


class SQLModelStore(ProvenanceStore):
    """Store backed by a SQLModel session. One instance per request."""

    def __init__(self, session: Session):
        self.session = session

    def get_stakeholder(self, principal: str) -> Optional[Stakeholder]:
        return self.session.get(Stakeholder, principal)

    def put_stakeholder(self, stakeholder: Stakeholder) -> None:
        self.session.add(stakeholder)

    def delete_stakeholder(self, principal: str) -> None:
        stakeholder = self.session.get(Stakeholder, principal)
        if stakeholder:
            self.session.delete(stakeholder)

    def list_stakeholders(self) -> List[Stakeholder]:
        return self.session.exec(
            select(Stakeholder).order_by(Stakeholder.created_at, Stakeholder.principal)
        ).all()

    def get_product(self, handle: str, for_update: bool = False) -> Optional[Product]:
        return self.session.get(Product, handle, with_for_update=for_update or None)

    def put_product(self, product: Product) -> None:
        self.session.add(product)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise DuplicateProduct(
                f"A product with handle '{product.handle}' is already registered.") from e

    def get_journey(self, handle: str) -> List[TrackingRecord]:
        return self.session.exec(
            select(TrackingRecord)
            .where(TrackingRecord.product_handle == handle)
            .order_by(TrackingRecord.sequence)
        ).all()

    def journey_length(self, handle: str) -> int:
        return self.session.exec(
            select(func.count()).select_from(TrackingRecord).where(
                TrackingRecord.product_handle == handle)
        ).one()

    def append_record(self, record: TrackingRecord) -> None:
        self.session.add(record)
        # Make the record visible to journey_length/get_journey inside
        # the same transaction.
        try:
            self.session.flush()
        except IntegrityError as e:
            raise InvalidTransition(
                f"Journey of '{record.product_handle}' already has a record "
                f"at position {record.sequence}.") from e

    def get_registry_state(self, for_update: bool = False) -> Optional[RegistryState]:
        return self.session.get(RegistryState, 1, with_for_update=for_update or None)

    def put_registry_state(self, state: RegistryState) -> None:
        self.session.add(state)

    def add_event(self, event: ProvenanceEvent) -> None:
        self.session.add(event)

    def list_events(self, after_id: int = 0, limit: int = 100) -> List[ProvenanceEvent]:
        return self.session.exec(
            select(ProvenanceEvent)
            .where(ProvenanceEvent.id > after_id)
            .order_by(ProvenanceEvent.id)
            .limit(limit)
        ).all()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Runs the block in a fresh write transaction. A read transaction left
        open on the session is discarded first, so every read in the block
        sees the state it will commit against.
        """
        if self.session.in_transaction():
            self.session.rollback()
        self.session.connection(execution_options={"write_lock": True})
        try:
            yield
            self.session.commit()
        except ProvenanceError:
            self.session.rollback()
            raise
        except Exception:
            self.session.rollback()
            logger.exception("Transaction rolled back")
            raise


class InMemoryStore(ProvenanceStore):
    """
    Process-local store for tests and tooling.
    Rows are kept as plain dicts, so callers only ever hold copies and
    nothing changes until it is put back. Transactions run one at a time.
    """

    def __init__(self):
        self._stakeholders: Dict[str, Dict[str, Any]] = {}
        self._products: Dict[str, Dict[str, Any]] = {}
        self._journal: Dict[str, List[Dict[str, Any]]] = {}
        self._registry: Optional[Dict[str, Any]] = None
        self._events: List[Dict[str, Any]] = []
        self._next_record_id = 1
        self._lock = threading.RLock()

    def get_stakeholder(self, principal: str) -> Optional[Stakeholder]:
        row = self._stakeholders.get(principal)
        return Stakeholder(**row) if row else None

    def put_stakeholder(self, stakeholder: Stakeholder) -> None:
        self._stakeholders[stakeholder.principal] = stakeholder.model_dump()

    def delete_stakeholder(self, principal: str) -> None:
        self._stakeholders.pop(principal, None)

    def list_stakeholders(self) -> List[Stakeholder]:
        rows = sorted(self._stakeholders.values(),
                      key=lambda r: (r["created_at"], r["principal"]))
        return [Stakeholder(**row) for row in rows]

    def get_product(self, handle: str, for_update: bool = False) -> Optional[Product]:
        row = self._products.get(handle)
        return Product(**row) if row else None

    def put_product(self, product: Product) -> None:
        self._products[product.handle] = product.model_dump()

    def get_journey(self, handle: str) -> List[TrackingRecord]:
        return [TrackingRecord(**row) for row in self._journal.get(handle, [])]

    def journey_length(self, handle: str) -> int:
        return len(self._journal.get(handle, []))

    def append_record(self, record: TrackingRecord) -> None:
        record.id = self._next_record_id
        self._next_record_id += 1
        self._journal.setdefault(record.product_handle, []).append(
            record.model_dump())

    def get_registry_state(self, for_update: bool = False) -> Optional[RegistryState]:
        return RegistryState(**self._registry) if self._registry else None

    def put_registry_state(self, state: RegistryState) -> None:
        self._registry = state.model_dump()

    def add_event(self, event: ProvenanceEvent) -> None:
        event.id = len(self._events) + 1
        self._events.append(event.model_dump())

    def list_events(self, after_id: int = 0, limit: int = 100) -> List[ProvenanceEvent]:
        rows = [row for row in self._events if row["id"] > after_id]
        return [ProvenanceEvent(**row) for row in rows[:limit]]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = (
                dict(self._stakeholders),
                dict(self._products),
                {handle: list(rows) for handle, rows in self._journal.items()},
                self._registry,
                list(self._events),
                self._next_record_id,
            )
            try:
                yield
            except Exception:
                (self._stakeholders, self._products, self._journal,
                 self._registry, self._events, self._next_record_id) = snapshot
                raise
