import logging
from typing import List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.exceptions import OwnershipConflict, ValidationError, store_operation
from app.models.database import Vehicle, AsyncSessionLocal
from app.models.schemas import VehicleRecord
from app.utils.plates import normalize_vehicle_number

logger = logging.getLogger(__name__)


class VehicleRegistry:
    """
    Source of truth for which account owns a vehicle number.

    Each normalized vehicle number is bound to at most one account. The
    unique index on ``vehicles.vehicle_number`` is the final guard against
    two concurrent registrations of the same number.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or AsyncSessionLocal

    @store_operation
    async def register(self, vehicle_number: Optional[str], account_id: Optional[str]) -> Tuple[VehicleRecord, bool]:
        """
        Bind a vehicle number to an account.

        Returns:
            Tuple of (vehicle, created). ``created`` is False when the
            vehicle was already registered to the same account.

        Raises:
            ValidationError: vehicle number or account missing
            OwnershipConflict: vehicle registered to another account
        """
        normalized = normalize_vehicle_number(vehicle_number)
        if not normalized or not account_id:
            raise ValidationError("Missing fields")

        existing = await self._find(normalized)
        if existing is not None:
            return self._resolve_existing(existing, account_id), False

        async with self._session_factory() as session:
            vehicle = Vehicle(vehicle_number=normalized, owner_email=account_id)
            session.add(vehicle)
            try:
                await session.commit()
            except IntegrityError:
                # Lost a race with another registration of the same number
                await session.rollback()
                existing = await self._find(normalized)
                if existing is None:
                    raise
                return self._resolve_existing(existing, account_id), False
            await session.refresh(vehicle)

        logger.info(f"Registered vehicle {normalized} to {account_id}")
        return VehicleRecord.model_validate(vehicle), True

    @store_operation
    async def find_by_number(self, vehicle_number: Optional[str]) -> Optional[VehicleRecord]:
        """Get the registration for a vehicle number, or None if unregistered."""
        normalized = normalize_vehicle_number(vehicle_number)
        if not normalized:
            return None
        vehicle = await self._find(normalized)
        return VehicleRecord.model_validate(vehicle) if vehicle else None

    @store_operation
    async def list_by_owner(self, account_id: str) -> List[VehicleRecord]:
        """Get all vehicles registered to an account."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Vehicle).where(Vehicle.owner_email == account_id)
            )
            return [VehicleRecord.model_validate(v) for v in result.scalars().all()]

    async def _find(self, normalized: str) -> Optional[Vehicle]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Vehicle).where(Vehicle.vehicle_number == normalized)
            )
            return result.scalar_one_or_none()

    def _resolve_existing(self, existing: Vehicle, account_id: str) -> VehicleRecord:
        if existing.owner_email != account_id:
            logger.warning(
                f"Registration of {existing.vehicle_number} by {account_id} rejected: "
                f"owned by another account"
            )
            raise OwnershipConflict()
        return VehicleRecord.model_validate(existing)


# Global vehicle registry instance
vehicle_registry = VehicleRegistry()
