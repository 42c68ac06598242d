from datetime import datetime
from typing import Any
from sqlmodel import SQLModel, Field

from app.db.schema import Stage


class TrackingFieldsBase(SQLModel):
    """
    Context and costs recorded with every stage a product reaches.
    Amounts are validated by the journal so that a negative value is
    reported as invalid input rather than a schema error.
    """
    location: str = Field(
        default="",
        schema_extra={"examples": ["Faisalabad, PK"]},
        description="Where the product was handled at this stage."
    )
    certifications: str = Field(
        default="",
        schema_extra={"examples": ["GOTS-2023-114"]},
        description="Certification references. Stored verbatim, never verified."
    )
    carbon_footprint: int = Field(
        default=0,
        schema_extra={"examples": [1250]},
        description="Emissions added at this stage, in grams CO2. Must be >= 0."
    )
    working_conditions: str = Field(
        default="",
        schema_extra={"examples": ["SA8000 audited"]},
        description="Labor conditions statement for this stage."
    )
    fair_wages_paid: int = Field(
        default=0,
        schema_extra={"examples": [50000]},
        description="Wages paid at this stage, in minor currency units. Must be >= 0."
    )
    notes: str = Field(default="", description="Free-text remarks.")


class StageAdvance(TrackingFieldsBase):
    # Left untyped so the journal, not the schema, rejects bad stage values.
    stage: Any = Field(
        schema_extra={"examples": ["manufacturing", 1]},
        description="Target stage by name or ordinal (0 = raw_material ... 5 = sold). Must be after the current stage."
    )


class TrackingRecordRead(TrackingFieldsBase):
    sequence: int
    stage: Stage
    handler: str
    timestamp: datetime
