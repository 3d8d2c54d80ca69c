from typing import Dict, Iterable

from app.models.schemas import ChallanRecord, ChallanStatus, ChallanSummary, MonthlyBucket


def summarize(records: Iterable[ChallanRecord]) -> ChallanSummary:
    """
    Derive dashboard statistics from a set of challans.

    Monthly buckets are keyed ``YYYY-MM`` from the challan date and
    sorted chronologically.
    """
    records = list(records)
    pending = [r for r in records if r.status == ChallanStatus.PENDING]
    paid = [r for r in records if r.status == ChallanStatus.PAID]

    type_counts: Dict[str, int] = {}
    monthly: Dict[str, MonthlyBucket] = {}
    for record in records:
        type_counts[record.violation_type] = type_counts.get(record.violation_type, 0) + 1

        key = record.date[:7]
        bucket = monthly.setdefault(key, MonthlyBucket(key=key, count=0, amount=0.0))
        bucket.count += 1
        bucket.amount += record.amount

    total_amount = sum(r.amount for r in records)
    pending_amount = sum(r.amount for r in pending)

    return ChallanSummary(
        total_violations=len(records),
        pending_payments=len(pending),
        paid_fines=len(paid),
        total_amount=total_amount,
        pending_amount=pending_amount,
        paid_amount=total_amount - pending_amount,
        violations_by_type=type_counts,
        monthly=[monthly[key] for key in sorted(monthly)]
    )
