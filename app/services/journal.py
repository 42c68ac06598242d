"""
The provenance journal: an append-only list of tracking records per product,
and the state machine that decides which stage may be appended next.

A product starts at RAW_MATERIAL (written by registration) and may only move
to a stage with a strictly higher ordinal. Intermediate stages may be
skipped; MANUFACTURING -> RETAIL is legal. SOLD is terminal because nothing
ranks above it.
"""
from datetime import datetime
from typing import Any, Callable, Optional
from loguru import logger

from app.core.errors import InvalidTransition, InvalidInput, NotFound
from app.db.schema import Product, Stage, TrackingRecord, EventType
from app.db.store import ProvenanceStore
from app.models.tracking import StageAdvance, TrackingFieldsBase
from app.services.events import EventService
from app.services.stakeholder import StakeholderService


def check_transition(current: Stage, requested: Any) -> Stage:
    """Returns the parsed target stage, or raises InvalidTransition."""
    try:
        new_stage = Stage.parse(requested)
    except ValueError as e:
        raise InvalidTransition(str(e))

    if new_stage.ordinal <= current.ordinal:
        raise InvalidTransition(
            f"Cannot move from '{current.value}' to '{new_stage.value}'; "
            "stages only move forward."
        )
    return new_stage


def check_record_fields(fields: TrackingFieldsBase) -> None:
    if fields.carbon_footprint < 0:
        raise InvalidInput("carbon_footprint must not be negative.")
    if fields.fair_wages_paid < 0:
        raise InvalidInput("fair_wages_paid must not be negative.")


class JournalService:

    def __init__(
        self,
        store: ProvenanceStore,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.clock = clock or datetime.utcnow
        self.stakeholders = StakeholderService(store)
        self.events = EventService(store)

    def get_active_product(self, handle: str, for_update: bool = False) -> Product:
        product = self.store.get_product(handle, for_update=for_update)
        if not product or not product.is_active:
            raise NotFound(f"No active product with handle '{handle}'.")
        return product

    def append(
        self,
        product: Product,
        stage: Stage,
        handler: str,
        fields: TrackingFieldsBase,
        timestamp: datetime
    ) -> TrackingRecord:
        """
        Appends a record and moves the product's stage pointer with it.
        Must be called inside a store transaction after all checks pass.
        """
        record = TrackingRecord(
            product_handle=product.handle,
            sequence=self.store.journey_length(product.handle),
            stage=stage,
            handler=handler,
            timestamp=timestamp,
            location=fields.location,
            certifications=fields.certifications,
            carbon_footprint=fields.carbon_footprint,
            working_conditions=fields.working_conditions,
            fair_wages_paid=fields.fair_wages_paid,
            notes=fields.notes,
        )
        self.store.append_record(record)

        product.current_stage = stage
        self.store.put_product(product)

        self.events.emit(
            EventType.STAGE_UPDATED,
            handle=product.handle,
            new_stage=stage.value,
            handler=handler,
            location=fields.location,
        )
        return record

    def advance(self, caller: str, handle: str, data: StageAdvance) -> TrackingRecord:
        with self.store.transaction():
            self.stakeholders.require_authorized(caller)
            # The product row lock keeps the stage pointer and the journal
            # length fixed between the check and the append.
            product = self.get_active_product(handle, for_update=True)

            try:
                new_stage = check_transition(product.current_stage, data.stage)
                check_record_fields(data)
            except (InvalidTransition, InvalidInput) as e:
                logger.warning(f"Rejected stage update for {handle} by {caller}: {e.detail}")
                raise

            record = self.append(product, new_stage, caller, data, self.clock())

        logger.info(f"Product {handle} advanced to {new_stage.value} by {caller}")
        return record
