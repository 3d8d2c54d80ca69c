from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import List, Optional

from app.exceptions import ValidationError
from app.models.schemas import (
    LastSearchResponse,
    MessageResponse,
    OwnershipStatusResponse,
    VehicleRecord,
    VehicleRegisterRequest,
)
from app.services.lookup_service import lookup_service
from app.services.search_cache import search_cache
from app.services.vehicle_registry import vehicle_registry

router = APIRouter()


@router.post("/vehicles/register", response_model=VehicleRecord, status_code=201)
async def register_vehicle(body: VehicleRegisterRequest):
    """
    Register a vehicle number to an account.
    
    Returns 201 with the new vehicle, or 200 if the vehicle was already
    registered to the same account. A vehicle owned by another account
    is rejected with 409.
    """
    vehicle, created = await vehicle_registry.register(body.vehicle_number, body.email)
    
    if not created:
        return JSONResponse(
            status_code=200,
            content={
                "message": "Vehicle already registered to you",
                "vehicle": vehicle.model_dump(by_alias=True, mode="json")
            }
        )
    
    return vehicle


@router.get("/vehicles/my-vehicles", response_model=List[VehicleRecord])
async def get_my_vehicles(email: Optional[str] = Query(default=None)):
    """
    Get vehicles registered to an account.
    """
    if not email:
        raise ValidationError("Email required")
    
    return await vehicle_registry.list_by_owner(email)


@router.get("/vehicles/status/{vehicle_number}", response_model=OwnershipStatusResponse)
async def get_vehicle_status(vehicle_number: str, email: Optional[str] = Query(default=None)):
    """
    Check whether a vehicle is unregistered, owned by the caller or owned by someone else.
    """
    status = await lookup_service.ownership_status(vehicle_number, email)
    return OwnershipStatusResponse(status=status)


@router.get("/vehicles/last-search", response_model=LastSearchResponse)
async def get_last_search(email: Optional[str] = Query(default=None)):
    """
    Get the vehicle number the account most recently looked up.
    """
    if not email:
        raise ValidationError("Email required")
    
    return LastSearchResponse(vehicle_number=search_cache.last_search(email))


@router.delete("/vehicles/last-search", response_model=MessageResponse)
async def clear_last_search(email: Optional[str] = Query(default=None)):
    """
    Forget the account's most recent lookup (e.g. on logout).
    """
    if not email:
        raise ValidationError("Email required")
    
    search_cache.forget(email)
    return MessageResponse(message="Search history cleared")
