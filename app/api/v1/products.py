from fastapi import APIRouter, Depends, status

from app.core.dependencies import (
    get_current_principal, get_product_service,
    get_journal_service, get_provenance_service
)
from app.services.product import ProductService
from app.services.journal import JournalService
from app.services.provenance import ProvenanceService
from app.models.product import (
    ProductRegister, ProductRead, ProvenanceRead, ProvenanceSummary,
    CarbonFootprintRead, FairWagesRead, JourneyLengthRead,
    ProductCountRead, ProductQRCodeRead
)
from app.models.tracking import StageAdvance, TrackingRecordRead
from app.utils.qr import generate_and_save_qr, provenance_url

router = APIRouter()

# ==============================================================================
# REGISTRATION & STAGE UPDATES (authorized stakeholders)
# ==============================================================================


@router.post(
    "/",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register Product",
    description="Creates the product at raw_material and writes its first tracking record."
)
def register_product(
    payload: ProductRegister,
    caller: str = Depends(get_current_principal),
    service: ProductService = Depends(get_product_service),
    provenance: ProvenanceService = Depends(get_provenance_service)
):
    handle = service.register(caller, payload)
    return provenance.get_product(handle)


@router.post(
    "/{handle}/stages",
    response_model=TrackingRecordRead,
    status_code=status.HTTP_201_CREATED,
    summary="Advance Stage",
    description="Appends a tracking record for a later stage. Stages may be skipped but never revisited."
)
def advance_stage(
    handle: str,
    payload: StageAdvance,
    caller: str = Depends(get_current_principal),
    service: JournalService = Depends(get_journal_service)
):
    return service.advance(caller, handle, payload)

# ==============================================================================
# PUBLIC PROVENANCE
# ==============================================================================


@router.get("/count", response_model=ProductCountRead, summary="Product Count")
def get_product_count(
    service: ProductService = Depends(get_product_service)
):
    return ProductCountRead(product_count=service.get_product_count())


@router.get(
    "/{handle}",
    response_model=ProvenanceRead,
    summary="Get Provenance",
    description="The product and its full journey, oldest record first."
)
def get_provenance(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    return service.get_provenance(handle)


@router.get("/{handle}/summary", response_model=ProvenanceSummary, summary="Provenance Summary")
def get_summary(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    return service.get_summary(handle)


@router.get("/{handle}/carbon-footprint", response_model=CarbonFootprintRead)
def get_total_carbon_footprint(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    """Total grams of CO2 across every recorded stage."""
    return CarbonFootprintRead(
        handle=handle,
        total_carbon_footprint=service.get_total_carbon_footprint(handle)
    )


@router.get("/{handle}/fair-wages", response_model=FairWagesRead)
def get_total_fair_wages(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    """Total wages paid across every recorded stage, in minor currency units."""
    return FairWagesRead(
        handle=handle,
        total_fair_wages=service.get_total_fair_wages(handle)
    )


@router.get("/{handle}/journey-length", response_model=JourneyLengthRead)
def get_journey_length(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    return JourneyLengthRead(
        handle=handle,
        journey_length=service.get_journey_length(handle)
    )


@router.post(
    "/{handle}/qr-code",
    response_model=ProductQRCodeRead,
    summary="Generate QR Code",
    description="Renders a QR code pointing at the product's public provenance trail."
)
def create_qr_code(
    handle: str,
    service: ProvenanceService = Depends(get_provenance_service)
):
    service.get_product(handle)
    target_url = provenance_url(handle)
    return ProductQRCodeRead(
        handle=handle,
        target_url=target_url,
        qr_code_url=generate_and_save_qr(target_url, handle)
    )
