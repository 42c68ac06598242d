from typing import Optional, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field, JSON
from sqlalchemy import UniqueConstraint
from enum import Enum


class Stage(str, Enum):
    """
    Supply-chain stages in the only order a product may pass through them.
    Declaration order is the ordinal order used for transition checks.
    """
    RAW_MATERIAL = "raw_material"
    MANUFACTURING = "manufacturing"
    QUALITY = "quality"
    DISTRIBUTION = "distribution"
    RETAIL = "retail"
    SOLD = "sold"

    @property
    def ordinal(self) -> int:
        return list(Stage).index(self)

    @classmethod
    def parse(cls, value: Any) -> "Stage":
        """
        Accepts a member, its wire value ('retail'), its name ('RETAIL')
        or its ordinal position (4). Raises ValueError for anything else,
        including booleans and floats.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid stage: {value!r}")
        if isinstance(value, int):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"Stage ordinal out of range: {value}")
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
            if value.upper() in cls.__members__:
                return cls[value.upper()]
        raise ValueError(f"Invalid stage: {value!r}")


class EventType(str, Enum):
    PRODUCT_REGISTERED = "ProductRegistered"
    STAGE_UPDATED = "StageUpdated"
    STAKEHOLDER_AUTHORIZED = "StakeholderAuthorized"
    STAKEHOLDER_REVOKED = "StakeholderRevoked"


class TimestampMixin(SQLModel):
    """
    Standard audit timestamps for database records.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="The exact UTC timestamp when this record was first persisted in the database. Example: '2023-10-27 14:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="The exact UTC timestamp when this record was last modified. Updates automatically. Example: '2023-10-28 09:15:00'"
    )


class Stakeholder(TimestampMixin, SQLModel, table=True):
    """
    An authenticated principal that is allowed to mutate registry state.
    Membership is the whole story: a row exists while the principal is
    authorized and is removed when the admin revokes it.
    """
    principal: str = Field(
        primary_key=True,
        description="Opaque identity established by the caller's bearer token. Example: 'did:example:farm-co-op-17'"
    )
    role: str = Field(
        description="Free-text role label assigned by the admin. Example: 'Farmer'"
    )


class Product(SQLModel, table=True):
    """
    A physical product being tracked through the supply chain.
    The handle is the only external identifier once registration returns.
    """
    handle: str = Field(
        primary_key=True,
        description="Derived identifier, 0x-prefixed SHA-256 hex. Example: '0x9f86d08...'"
    )
    product_code: str = Field(
        index=True,
        description="External product code as printed on the item. Example: 'SKU-1'"
    )
    name: str = Field(
        description="Human-readable product name. Example: 'Organic Cotton T-Shirt'"
    )
    current_stage: Stage = Field(
        default=Stage.RAW_MATERIAL,
        description="Latest stage reached. Only moves forward, in lockstep with the journal."
    )
    created_at: datetime = Field(
        description="UTC time of registration."
    )
    created_by: str = Field(
        index=True,
        description="Principal that registered the product."
    )
    is_active: bool = Field(
        default=True,
        description="Inactive products are invisible to every operation."
    )


class TrackingRecord(SQLModel, table=True):
    """
    One immutable entry in a product's provenance journey.
    Records are only ever appended; `sequence` gives their order.
    """
    __table_args__ = (
        UniqueConstraint("product_handle", "sequence",
                         name="uq_trackingrecord_product_sequence"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    product_handle: str = Field(
        foreign_key="product.handle",
        index=True,
        description="The product this record belongs to."
    )
    sequence: int = Field(
        description="Zero-based position in the journey. The registration record is 0."
    )
    stage: Stage = Field(
        description="Stage reached with this record."
    )
    handler: str = Field(
        description="Principal that submitted the record."
    )
    location: str = Field(
        default="",
        description="Where the product was handled. Example: 'Faisalabad, PK'"
    )
    timestamp: datetime = Field(
        description="UTC time the record was appended."
    )
    certifications: str = Field(
        default="",
        description="Opaque certification references. Example: 'GOTS-2023-114; OEKO-TEX 100'"
    )
    carbon_footprint: int = Field(
        default=0,
        ge=0,
        description="Emissions added at this stage, in grams CO2. Example: 1250"
    )
    working_conditions: str = Field(
        default="",
        description="Labor conditions statement. Example: 'SA8000 audited, 40h week'"
    )
    fair_wages_paid: int = Field(
        default=0,
        ge=0,
        description="Wages paid at this stage, in minor currency units. Example: 50000"
    )
    notes: str = Field(
        default="",
        description="Free-text remarks."
    )


class RegistryState(SQLModel, table=True):
    """
    Singleton row holding the registry scalars.
    """
    id: int = Field(default=1, primary_key=True)
    admin_principal: str = Field(
        description="The principal that initialized the registry. Cannot be revoked."
    )
    product_count: int = Field(
        default=0,
        description="Number of products ever registered."
    )


class ProvenanceEvent(SQLModel, table=True):
    """
    Outbox of notifications emitted by successful mutations.
    Written in the same transaction as the mutation, consumed by external
    subscribers through the events feed.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    event_type: EventType = Field(index=True)
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="Event arguments. Example: {'handle': '0x..', 'new_stage': 'retail'}"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
