from typing import List, Optional
from loguru import logger

from app.core.errors import (
    Unauthorized, InvalidTarget, InvalidRole,
    AlreadyAuthorized, NotAuthorized, CannotRevokeAdmin, NotFound
)
from app.db.schema import Stakeholder, RegistryState, EventType
from app.db.store import ProvenanceStore
from app.models.stakeholder import StakeholderStatus
from app.services.events import EventService

ADMIN_ROLE = "Admin"


class StakeholderService:
    """
    The authorization registry. Decides who may mutate registry state.
    """

    def __init__(self, store: ProvenanceStore):
        self.store = store
        self.events = EventService(store)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def get_admin(self) -> Optional[str]:
        state = self.store.get_registry_state()
        return state.admin_principal if state else None

    def is_authorized(self, principal: Optional[str]) -> bool:
        if not principal:
            return False
        return self.store.has_stakeholder(principal)

    def require_admin(self, caller: Optional[str]) -> None:
        admin = self.get_admin()
        if not caller or admin is None or caller != admin:
            logger.warning(f"Access denied: {caller!r} is not the admin.")
            raise Unauthorized("Only the admin may manage stakeholders.")

    def require_authorized(self, caller: Optional[str]) -> None:
        if not self.is_authorized(caller):
            logger.warning(f"Access denied: {caller!r} is not an authorized stakeholder.")
            raise Unauthorized("Caller is not an authorized stakeholder.")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize(self, admin_principal: str) -> Stakeholder:
        """
        Authorizes the deploying principal as admin, once.
        Subsequent start-ups with the same principal are no-ops.
        """
        if not admin_principal:
            raise InvalidTarget("Admin principal must not be empty.")

        with self.store.transaction():
            state = self.store.get_registry_state(for_update=True)
            if state is not None:
                if state.admin_principal != admin_principal:
                    raise InvalidTarget(
                        f"Registry already initialized with admin '{state.admin_principal}'.")
                return self.store.get_stakeholder(admin_principal)

            admin = Stakeholder(principal=admin_principal, role=ADMIN_ROLE)
            self.store.put_stakeholder(admin)
            self.store.put_registry_state(
                RegistryState(admin_principal=admin_principal, product_count=0))
            self.events.emit(EventType.STAKEHOLDER_AUTHORIZED,
                             principal=admin_principal, role=ADMIN_ROLE)

        logger.info(f"Registry initialized with admin {admin_principal}")
        return self.store.get_stakeholder(admin_principal)

    def authorize(self, caller: str, target: str, role: str) -> Stakeholder:
        with self.store.transaction():
            self.require_admin(caller)

            if not target or not target.strip():
                raise InvalidTarget("Stakeholder principal must not be empty.")
            if self.store.has_stakeholder(target):
                raise AlreadyAuthorized(f"'{target}' is already authorized.")
            if not role or not role.strip():
                raise InvalidRole("Role must not be empty.")

            stakeholder = Stakeholder(principal=target, role=role)
            self.store.put_stakeholder(stakeholder)
            self.events.emit(EventType.STAKEHOLDER_AUTHORIZED,
                             principal=target, role=role)

        logger.info(f"Authorized {target} as '{role}'")
        return self.store.get_stakeholder(target)

    def revoke(self, caller: str, target: str) -> None:
        with self.store.transaction():
            self.require_admin(caller)

            if not self.store.has_stakeholder(target):
                raise NotAuthorized(f"'{target}' is not authorized.")
            if target == self.get_admin():
                raise CannotRevokeAdmin("The admin cannot be revoked.")

            self.store.delete_stakeholder(target)
            self.events.emit(EventType.STAKEHOLDER_REVOKED, principal=target)

        logger.info(f"Revoked {target}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_status(self, principal: str) -> StakeholderStatus:
        stakeholder = self.store.get_stakeholder(principal) if principal else None
        return StakeholderStatus(
            principal=principal,
            is_authorized=stakeholder is not None,
            is_admin=stakeholder is not None and principal == self.get_admin(),
            role=stakeholder.role if stakeholder else None,
        )

    def get_stakeholder(self, principal: str) -> Stakeholder:
        stakeholder = self.store.get_stakeholder(principal)
        if not stakeholder:
            raise NotFound(f"Stakeholder '{principal}' not found.")
        return stakeholder

    def list_stakeholders(self) -> List[Stakeholder]:
        return self.store.list_stakeholders()
