import logging
from typing import List, Optional

from app.exceptions import ForbiddenOtherOwner
from app.models.schemas import ChallanRecord, LookupRequest, OwnershipStatus
from app.services.search_cache import RecentSearchCache, search_cache
from app.services.vehicle_registry import VehicleRegistry, vehicle_registry
from app.services.violation_store import ViolationStore, violation_store
from app.utils.plates import normalize_vehicle_number

logger = logging.getLogger(__name__)


class LookupService:
    """
    Answers which challans apply to a vehicle, guarding vehicles that are
    registered to someone other than the requester.
    """

    def __init__(
        self,
        registry: Optional[VehicleRegistry] = None,
        store: Optional[ViolationStore] = None,
        cache: Optional[RecentSearchCache] = None
    ):
        self._registry = registry or vehicle_registry
        self._store = store or violation_store
        self._cache = cache or search_cache

    async def lookup(self, request: LookupRequest) -> List[ChallanRecord]:
        """
        Get the challans for ``request.vehicle_number``.

        Without a vehicle number every challan is returned. With an
        ``account_id``, a vehicle registered to a different account is
        refused; an unregistered vehicle is allowed through since challans
        may be issued before the owner registers.

        Raises:
            ForbiddenOtherOwner: vehicle registered to another account
        """
        normalized = normalize_vehicle_number(request.vehicle_number)
        if not normalized:
            return await self._store.find_all()

        if request.account_id:
            await self._ensure_not_owned_by_other(normalized, request.account_id)

        # licensePlate is not normalized at write time for older rows, so
        # match in application code rather than in the query
        matches = [
            challan for challan in await self._store.find_all()
            if normalize_vehicle_number(challan.license_plate) == normalized
        ]

        if request.account_id:
            self._cache.remember(request.account_id, normalized)

        return matches

    async def ownership_status(
        self,
        vehicle_number: str,
        account_id: Optional[str] = None
    ) -> OwnershipStatus:
        """Classify a vehicle number relative to the requester without returning challans."""
        vehicle = await self._registry.find_by_number(vehicle_number)
        if vehicle is None:
            return OwnershipStatus.UNREGISTERED
        if account_id and vehicle.owner_email == account_id:
            return OwnershipStatus.OWNED_BY_SELF
        return OwnershipStatus.OWNED_BY_OTHER

    async def _ensure_not_owned_by_other(self, normalized: str, account_id: str) -> None:
        vehicle = await self._registry.find_by_number(normalized)
        if vehicle is not None and vehicle.owner_email != account_id:
            logger.warning(f"Lookup of {normalized} by {account_id} refused: owned by another account")
            raise ForbiddenOtherOwner()


# Global lookup service instance
lookup_service = LookupService()
