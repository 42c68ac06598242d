from typing import List
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.db.schema import Stage
from app.models.tracking import TrackingFieldsBase, TrackingRecordRead


class ProductBase(SQLModel):
    product_code: str = Field(
        schema_extra={"examples": ["SKU-1"]},
        description="External product code as printed on the item."
    )
    name: str = Field(
        schema_extra={"examples": ["Organic Cotton T-Shirt"]},
        description="Human-readable product name."
    )


class ProductRegister(ProductBase, TrackingFieldsBase):
    """
    Registers a product and its raw-material record in one step.
    The tracking fields describe the raw-material stage.
    """
    pass


class ProductRead(ProductBase):
    handle: str
    current_stage: Stage
    created_at: datetime
    created_by: str
    is_active: bool


class ProvenanceRead(SQLModel):
    """
    The full provenance trail: the product and every record, oldest first.
    """
    product: ProductRead
    journey: List[TrackingRecordRead] = []


class ProvenanceSummary(SQLModel):
    handle: str
    current_stage: Stage
    journey_length: int
    total_carbon_footprint: int
    total_fair_wages: int


class CarbonFootprintRead(SQLModel):
    handle: str
    total_carbon_footprint: int


class FairWagesRead(SQLModel):
    handle: str
    total_fair_wages: int


class JourneyLengthRead(SQLModel):
    handle: str
    journey_length: int


class ProductCountRead(SQLModel):
    product_count: int


class ProductQRCodeRead(SQLModel):
    handle: str
    target_url: str
    qr_code_url: str
