from typing import List

from app.core.errors import NotFound
from app.db.schema import Product, Stage, TrackingRecord
from app.db.store import ProvenanceStore
from app.models.product import ProductRead, ProvenanceRead, ProvenanceSummary
from app.models.tracking import TrackingRecordRead


class ProvenanceService:
    """
    Read-only views over the journal. Totals are recomputed from the records
    on every call; the journal only grows, so a fold is always current.
    """

    def __init__(self, store: ProvenanceStore):
        self.store = store

    def get_product(self, handle: str) -> Product:
        product = self.store.get_product(handle)
        if not product or not product.is_active:
            raise NotFound(f"No active product with handle '{handle}'.")
        return product

    def _journey(self, handle: str) -> List[TrackingRecord]:
        self.get_product(handle)
        return self.store.get_journey(handle)

    def get_provenance(self, handle: str) -> ProvenanceRead:
        product = self.get_product(handle)
        journey = self.store.get_journey(handle)
        return ProvenanceRead(
            product=ProductRead.model_validate(product),
            journey=[TrackingRecordRead.model_validate(r) for r in journey],
        )

    def get_current_stage(self, handle: str) -> Stage:
        return self.get_product(handle).current_stage

    def get_total_carbon_footprint(self, handle: str) -> int:
        return sum(r.carbon_footprint for r in self._journey(handle))

    def get_total_fair_wages(self, handle: str) -> int:
        return sum(r.fair_wages_paid for r in self._journey(handle))

    def get_journey_length(self, handle: str) -> int:
        self.get_product(handle)
        return self.store.journey_length(handle)

    def get_summary(self, handle: str) -> ProvenanceSummary:
        product = self.get_product(handle)
        journey = self.store.get_journey(handle)
        return ProvenanceSummary(
            handle=handle,
            current_stage=product.current_stage,
            journey_length=len(journey),
            total_carbon_footprint=sum(r.carbon_footprint for r in journey),
            total_fair_wages=sum(r.fair_wages_paid for r in journey),
        )
