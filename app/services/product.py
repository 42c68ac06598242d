from datetime import datetime
from typing import Callable, Optional
from loguru import logger

from app.core.errors import DuplicateProduct, InvalidInput
from app.db.schema import Product, Stage, RegistryState, EventType
from app.db.store import ProvenanceStore
from app.models.product import ProductRegister
from app.services.events import EventService
from app.services.journal import JournalService, check_record_fields
from app.services.stakeholder import StakeholderService
from app.utils.handles import HandleFactory, derive_product_handle


class ProductService:
    """
    The product registry. Creates products and hands out their handles.
    """

    def __init__(
        self,
        store: ProvenanceStore,
        handle_factory: HandleFactory = derive_product_handle,
        clock: Optional[Callable[[], datetime]] = None,
        include_nonce: bool = True
    ):
        self.store = store
        self.handle_factory = handle_factory
        self.clock = clock or datetime.utcnow
        self.include_nonce = include_nonce
        self.stakeholders = StakeholderService(store)
        self.journal = JournalService(store, clock=self.clock)
        self.events = EventService(store)

    def _registry_state(self, for_update: bool = False) -> RegistryState:
        state = self.store.get_registry_state(for_update=for_update)
        if state is None:
            raise RuntimeError("Registry has not been initialized.")
        return state

    def get_product_count(self) -> int:
        state = self.store.get_registry_state()
        return state.product_count if state else 0

    def register(self, caller: str, data: ProductRegister) -> str:
        """
        Creates a product at RAW_MATERIAL together with its first journal
        record and returns the new handle.
        """
        with self.store.transaction():
            self.stakeholders.require_authorized(caller)

            if not data.product_code or not data.product_code.strip():
                raise InvalidInput("product_code must not be empty.")
            if not data.name or not data.name.strip():
                raise InvalidInput("name must not be empty.")
            check_record_fields(data)

            # Locking the registry row serializes registrations, so the
            # count read here is the one this registration increments.
            state = self._registry_state(for_update=True)
            now = self.clock()
            nonce = state.product_count if self.include_nonce else None
            handle = self.handle_factory(data.product_code, now, caller, nonce)

            if self.store.get_product(handle, for_update=True) is not None:
                logger.warning(f"Duplicate registration of {handle} by {caller}")
                raise DuplicateProduct(
                    f"A product with handle '{handle}' is already registered.")

            product = Product(
                handle=handle,
                product_code=data.product_code,
                name=data.name,
                current_stage=Stage.RAW_MATERIAL,
                created_at=now,
                created_by=caller,
                is_active=True,
            )
            self.store.put_product(product)

            state.product_count += 1
            self.store.put_registry_state(state)

            self.events.emit(
                EventType.PRODUCT_REGISTERED,
                handle=handle,
                name=data.name,
                registrar=caller,
            )
            self.journal.append(product, Stage.RAW_MATERIAL, caller, data, now)

        logger.info(f"Registered {data.product_code} as {handle} by {caller}")
        return handle
