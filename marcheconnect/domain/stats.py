"""Dashboard statistics for one market edition."""

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Iterable

from .entities import Application, PriceConfig
from .pricing import compute_total
from .value_objects import ApplicationStatus


@dataclass(frozen=True)
class DashboardStats:
    total: int = 0
    pending: int = 0
    accepted: int = 0  # Accepted, details form not received yet
    rejected: int = 0
    submitted: int = 0
    validated: int = 0
    revenue: int = 0  # Whole euros, billable applications only

    def to_dict(self) -> dict:
        return asdict(self)


def aggregate(applications: Iterable[Application], config: PriceConfig) -> DashboardStats:
    """
    Reduce an edition's applications into counts per status and total revenue.

    Order-independent: counting and integer addition commute.
    """
    counts: Counter = Counter()
    revenue = 0
    total = 0

    for application in applications:
        total += 1
        counts[application.status] += 1
        revenue += compute_total(application, config)

    return DashboardStats(
        total=total,
        pending=counts[ApplicationStatus.PENDING],
        accepted=counts[ApplicationStatus.ACCEPTED_FORM1],
        rejected=counts[ApplicationStatus.REJECTED],
        submitted=counts[ApplicationStatus.SUBMITTED_FORM2],
        validated=counts[ApplicationStatus.VALIDATED],
        revenue=revenue,
    )
