import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.config import get_settings
from app.exceptions import InvalidStatus
from app.models.schemas import (
    ChallanCreate,
    ChallanDetailsUpdate,
    ChallanRecord,
    ChallanStatus,
    ChallanUpdate,
)
from app.services.violation_store import ViolationStore, violation_store

logger = logging.getLogger(__name__)
settings = get_settings()

DEMO_CHALLANS: List[Dict[str, Any]] = [
    {
        "violation_id": "CHLN001",
        "date": "2024-10-15",
        "time": "14:30",
        "violation_type": "Speeding",
        "location": "Mumbai-Pune Expressway",
        "license_plate": "MH12AB1234",
        "amount": 1000,
        "status": "Pending",
    },
    {
        "violation_id": "CHLN002",
        "date": "2024-11-02",
        "time": "09:15",
        "violation_type": "Signal Jump",
        "location": "Deccan Gymkhana, Pune",
        "license_plate": "MH12AB1234",
        "amount": 500,
        "status": "Pending",
    },
    {
        "violation_id": "CHLN003",
        "date": "2024-09-20",
        "time": "18:45",
        "violation_type": "No Parking",
        "location": "FC Road, Pune",
        "license_plate": "MH12AB1234",
        "amount": 500,
        "status": "Paid",
    },
    {
        "violation_id": "CHLN004",
        "date": "2024-12-01",
        "time": "10:00",
        "violation_type": "Helmet Violation",
        "location": "Shivaji Nagar",
        "license_plate": "MH14XY9876",
        "amount": 500,
        "status": "Pending",
    },
    {
        "violation_id": "CHLN005",
        "date": "2024-12-05",
        "time": "11:30",
        "violation_type": "Speeding",
        "location": "Baner Road",
        "license_plate": "MH14XY9876",
        "amount": 1000,
        "status": "Paid",
    },
]

# Detail fields that may be cleared with an explicit null
CLEARABLE_FIELDS = {"due_date", "description"}


def _detail_patch(model: ChallanDetailsUpdate) -> Dict[str, Any]:
    return {
        key: value for key, value in model.model_dump(exclude_unset=True).items()
        if value is not None or key in CLEARABLE_FIELDS
    }


def validate_status(status: str) -> str:
    """Return ``status`` if it is a known challan status, else raise InvalidStatus."""
    try:
        return ChallanStatus(status).value
    except ValueError:
        raise InvalidStatus(status)


class RecordManager:
    """
    Creates and mutates challans on behalf of the admin and payment flows.

    A Paid challan may be set back to Pending; no reversal record is kept.
    """

    def __init__(self, store: Optional[ViolationStore] = None):
        self._store = store or violation_store
        self._id_prefix = settings.challan_id_prefix
        self._due_days = settings.default_due_days

    def generate_id(self) -> str:
        return f"{self._id_prefix}{uuid.uuid4().hex[:8].upper()}"

    async def create_record(self, data: ChallanCreate) -> ChallanRecord:
        """
        Create a challan.

        Missing ``id`` is generated, missing ``status`` becomes Pending and
        missing ``dueDate`` falls ``default_due_days`` after the violation date.
        """
        fields = data.model_dump(exclude_none=True)
        fields["status"] = validate_status(data.status) if data.status else ChallanStatus.PENDING.value
        fields["violation_id"] = data.violation_id or self.generate_id()
        if not data.due_date:
            issued = datetime.strptime(data.date, "%Y-%m-%d")
            fields["due_date"] = (issued + timedelta(days=self._due_days)).strftime("%Y-%m-%d")

        record = await self._store.create(fields)
        logger.info(f"Created challan {record.violation_id} for {record.license_plate}")
        return record

    async def set_status(self, violation_id: str, status: str) -> ChallanRecord:
        """
        Set a challan's status to Pending or Paid.

        Raises:
            InvalidStatus: any other status value
            NotFound: no challan with this id
        """
        # Unknown ids answer NotFound before the status is judged
        await self._store.find_by_id(violation_id)
        value = validate_status(status)
        record = await self._store.update(violation_id, {"status": value})
        logger.info(f"Challan {violation_id} status set to {value}")
        return record

    async def mark_paid(self, violation_id: str) -> ChallanRecord:
        return await self.set_status(violation_id, ChallanStatus.PAID.value)

    async def edit_details(self, violation_id: str, details: ChallanDetailsUpdate) -> ChallanRecord:
        """Change detail fields. Fields left unset are untouched."""
        patch = _detail_patch(details)
        patch.pop("status", None)
        return await self._store.update(violation_id, patch)

    async def apply_update(self, violation_id: str, update: ChallanUpdate) -> ChallanRecord:
        """Partial update from an API payload: optional status change plus detail edits."""
        patch = _detail_patch(update)
        status = patch.pop("status", None)
        if status is not None:
            await self._store.find_by_id(violation_id)
            patch["status"] = validate_status(status)
        return await self._store.update(violation_id, patch)

    async def seed_demo_data(self) -> int:
        """Replace every challan with the demo fixture set."""
        return await self._store.replace_all(dict(fixture) for fixture in DEMO_CHALLANS)


# Global record manager instance
record_manager = RecordManager()
