from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from app.utils.plates import normalize_vehicle_number

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}(:\d{2})?$"


def _calendar_date(value: Optional[str]) -> Optional[str]:
    if value is not None:
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"{value} is not a valid calendar date")
    return value


def _plate(value: Optional[str]) -> Optional[str]:
    if value is not None:
        value = normalize_vehicle_number(value)
        if not value:
            raise ValueError("license plate must not be blank")
    return value


class ChallanStatus(str, Enum):
    """Payment status of a challan."""
    PENDING = "Pending"
    PAID = "Paid"


class OwnershipStatus(str, Enum):
    """Registration state of a vehicle number relative to a requester."""
    UNREGISTERED = "unregistered"
    OWNED_BY_SELF = "owned_by_self"
    OWNED_BY_OTHER = "owned_by_other"


class VehicleRecord(BaseModel):
    """Registered vehicle."""
    vehicle_number: str = Field(alias="vehicleNumber")
    owner_email: str = Field(alias="ownerEmail")
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class VehicleRegisterRequest(BaseModel):
    """Request body for vehicle registration."""
    vehicle_number: Optional[str] = Field(default=None, alias="vehicleNumber")
    email: Optional[str] = None

    class Config:
        populate_by_name = True


class OwnershipStatusResponse(BaseModel):
    status: OwnershipStatus


class LastSearchResponse(BaseModel):
    vehicle_number: Optional[str] = Field(default=None, alias="vehicleNumber")

    class Config:
        populate_by_name = True


class ChallanRecord(BaseModel):
    """Challan as returned to callers."""
    violation_id: str = Field(alias="id")
    date: str
    time: str
    violation_type: str = Field(alias="type")
    location: str
    license_plate: str = Field(alias="licensePlate")
    amount: float
    status: ChallanStatus = ChallanStatus.PENDING
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    description: Optional[str] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class ChallanCreate(BaseModel):
    """Request body for creating a challan. ``id`` is generated when omitted."""
    violation_id: Optional[str] = Field(default=None, alias="id", min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    time: str = Field(pattern=TIME_PATTERN)
    violation_type: str = Field(alias="type", min_length=1)
    location: str = Field(min_length=1)
    license_plate: str = Field(alias="licensePlate", min_length=1)
    amount: float = Field(ge=0)
    status: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate", pattern=DATE_PATTERN)
    description: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("date", "due_date")
    @classmethod
    def check_calendar_date(cls, value):
        return _calendar_date(value)

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value):
        return _plate(value)


class ChallanDetailsUpdate(BaseModel):
    """Editable detail fields of a challan. Status and id are not editable here."""
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    violation_type: Optional[str] = Field(default=None, alias="type", min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    license_plate: Optional[str] = Field(default=None, alias="licensePlate", min_length=1)
    amount: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[str] = Field(default=None, alias="dueDate", pattern=DATE_PATTERN)
    description: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("date", "due_date")
    @classmethod
    def check_calendar_date(cls, value):
        return _calendar_date(value)

    @field_validator("license_plate")
    @classmethod
    def normalize_plate(cls, value):
        return _plate(value)


class ChallanUpdate(ChallanDetailsUpdate):
    """Partial update body for PUT; unknown keys such as ``id`` are ignored."""
    status: Optional[str] = None


class LookupRequest(BaseModel):
    """Who is asking about which vehicle."""
    vehicle_number: Optional[str] = None
    account_id: Optional[str] = None


class MonthlyBucket(BaseModel):
    key: str  # YYYY-MM
    count: int
    amount: float


class ChallanSummary(BaseModel):
    """Derived statistics over a set of challans."""
    total_violations: int = Field(alias="totalViolations")
    pending_payments: int = Field(alias="pendingPayments")
    paid_fines: int = Field(alias="paidFines")
    total_amount: float = Field(alias="totalAmount")
    pending_amount: float = Field(alias="pendingAmount")
    paid_amount: float = Field(alias="paidAmount")
    violations_by_type: Dict[str, int] = Field(alias="violationsByType")
    monthly: List[MonthlyBucket] = []

    class Config:
        populate_by_name = True


class MessageResponse(BaseModel):
    message: str


class SearchCacheStats(BaseModel):
    """Recent search cache statistics."""
    total_entries: int
    active_entries: int
    expired_entries: int
    hit_count: int
    miss_count: int
    hit_rate: float
