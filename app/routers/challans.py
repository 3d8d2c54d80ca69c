from fastapi import APIRouter, Query
from typing import List, Optional

from app.models.schemas import (
    ChallanCreate,
    ChallanRecord,
    ChallanSummary,
    ChallanUpdate,
    LookupRequest,
    MessageResponse,
)
from app.services.lookup_service import lookup_service
from app.services.record_manager import record_manager
from app.services.stats import summarize
from app.services.violation_store import violation_store

router = APIRouter()


@router.get("/challans", response_model=List[ChallanRecord])
async def get_challans(
    vehicle_number: Optional[str] = Query(default=None, alias="vehicleNumber"),
    user_email: Optional[str] = Query(default=None, alias="userEmail")
):
    """
    Get challans, optionally for a single vehicle.
    
    Args:
        vehicleNumber: Vehicle number to match (whitespace and case ignored)
        userEmail: Requesting account; vehicles registered to another
            account are refused with 403
    """
    request = LookupRequest(vehicle_number=vehicle_number, account_id=user_email)
    return await lookup_service.lookup(request)


@router.get("/challans/summary", response_model=ChallanSummary)
async def get_challans_summary(
    vehicle_number: Optional[str] = Query(default=None, alias="vehicleNumber"),
    user_email: Optional[str] = Query(default=None, alias="userEmail")
):
    """
    Get summary statistics for the challans a lookup would return.
    """
    request = LookupRequest(vehicle_number=vehicle_number, account_id=user_email)
    return summarize(await lookup_service.lookup(request))


@router.post("/challans/seed", response_model=MessageResponse)
async def seed_challans():
    """
    Replace all challans with the demo data set.
    """
    await record_manager.seed_demo_data()
    return MessageResponse(message="Database seeded successfully")


@router.post("/challans", response_model=ChallanRecord, status_code=201)
async def create_challan(body: ChallanCreate):
    """
    Create a challan. Status defaults to Pending.
    """
    return await record_manager.create_record(body)


@router.get("/challans/{violation_id}", response_model=ChallanRecord)
async def get_challan(violation_id: str):
    return await violation_store.find_by_id(violation_id)


@router.put("/challans/{violation_id}", response_model=ChallanRecord)
async def update_challan(violation_id: str, body: ChallanUpdate):
    """
    Partially update a challan. The id itself cannot be changed.
    """
    return await record_manager.apply_update(violation_id, body)


@router.post("/challans/{violation_id}/pay", response_model=ChallanRecord)
async def pay_challan(violation_id: str):
    """
    Mark a challan as paid.
    """
    return await record_manager.mark_paid(violation_id)
