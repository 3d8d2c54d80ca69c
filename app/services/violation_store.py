import logging
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.exceptions import DuplicateId, NotFound, store_operation
from app.models.database import Challan, AsyncSessionLocal
from app.models.schemas import ChallanRecord, ChallanStatus

logger = logging.getLogger(__name__)

# Columns a patch may touch; the identifier is deliberately absent
UPDATABLE_FIELDS = {
    "date",
    "time",
    "violation_type",
    "location",
    "license_plate",
    "amount",
    "status",
    "due_date",
    "description",
}


class ViolationStore:
    """
    Persistence for challan records.

    No business rules live here beyond the identifier being unique and
    immutable. ``replace_all`` is a demo reset and is not safe to run
    alongside other writers.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or AsyncSessionLocal

    @store_operation
    async def create(self, fields: Dict[str, Any]) -> ChallanRecord:
        """
        Insert a challan.

        Args:
            fields: Column values keyed by attribute name (``violation_id``,
                ``license_plate``...). ``status`` defaults to Pending.

        Raises:
            DuplicateId: a challan with the same id already exists
        """
        values = dict(fields)
        values["status"] = values.get("status") or ChallanStatus.PENDING.value

        async with self._session_factory() as session:
            challan = Challan(**values)
            session.add(challan)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise DuplicateId(values.get("violation_id"))
            await session.refresh(challan)
            return ChallanRecord.model_validate(challan)

    @store_operation
    async def update(self, violation_id: str, patch: Dict[str, Any]) -> ChallanRecord:
        """
        Apply a partial update. Identifier changes in ``patch`` are ignored.

        Raises:
            NotFound: no challan with this id
        """
        async with self._session_factory() as session:
            challan = await self._get(session, violation_id)
            for key, value in patch.items():
                if key in UPDATABLE_FIELDS:
                    setattr(challan, key, value)
            await session.commit()
            await session.refresh(challan)
            return ChallanRecord.model_validate(challan)

    @store_operation
    async def find_all(self) -> List[ChallanRecord]:
        """Get every challan in insertion order."""
        async with self._session_factory() as session:
            result = await session.execute(select(Challan).order_by(Challan.pk))
            return [ChallanRecord.model_validate(c) for c in result.scalars().all()]

    @store_operation
    async def find_by_id(self, violation_id: str) -> ChallanRecord:
        async with self._session_factory() as session:
            return ChallanRecord.model_validate(await self._get(session, violation_id))

    @store_operation
    async def replace_all(self, fixtures: Iterable[Dict[str, Any]]) -> int:
        """Delete every challan, then insert ``fixtures``. Returns inserted count."""
        async with self._session_factory() as session:
            await session.execute(delete(Challan))
            rows = [Challan(**fixture) for fixture in fixtures]
            session.add_all(rows)
            await session.commit()

        logger.info(f"Challan store reset with {len(rows)} records")
        return len(rows)

    async def _get(self, session, violation_id: str) -> Challan:
        result = await session.execute(
            select(Challan).where(Challan.violation_id == violation_id)
        )
        challan = result.scalar_one_or_none()
        if challan is None:
            raise NotFound("Challan not found")
        return challan


# Global violation store instance
violation_store = ViolationStore()
