"""Dashboard and firm performance report aggregations."""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.core import collections
from app.core.config import settings
from app.schemas.case import CaseStatus, normalize_matter
from app.schemas.invoice import PaymentStatus, invoice_total
from app.schemas.user import UserRole, normalize_role, normalize_user
from app.schemas.views import (
    DashboardSummary,
    MonthlyCount,
    MonthlyRevenue,
    OutcomeCount,
    ReportSummary,
    StatusCount,
    WorkloadEntry,
)
from app.services import joiner
from app.store.base import DESCENDING, DocumentStore, timestamp_sort_value
from app.utils.dates import month_label, month_sort_key, to_datetime, utcnow

logger = logging.getLogger(__name__)

Records = List[Dict[str, Any]]

ACTIVE_STATUSES = (CaseStatus.open.value, CaseStatus.in_progress.value)


def _total(invoice: Dict[str, Any]) -> float:
    return invoice_total(invoice.get("items"), invoice.get("amount"))


def total_revenue(invoices: Records) -> float:
    return sum(_total(i) for i in invoices if i.get("paymentStatus") == PaymentStatus.paid.value)


def upcoming(appointments: Records, now: datetime, limit: int) -> Records:
    future = [a for a in appointments if (to_datetime(a.get("startTime")) or now) > now]
    future.sort(key=lambda a: to_datetime(a.get("startTime")))
    return future[:limit]


def most_recent(records: Records, field: str, limit: int) -> Records:
    return sorted(records, key=lambda r: timestamp_sort_value(to_datetime(r.get(field))) or 0, reverse=True)[
        :limit
    ]


def status_counts(records: Iterable[Dict[str, Any]], field: str, default: str) -> List[StatusCount]:
    counts = Counter((record.get(field) or default) for record in records)
    return [StatusCount(status=status, value=value) for status, value in counts.items()]


def revenue_by_month(invoices: Records) -> List[MonthlyRevenue]:
    months: Dict[str, MonthlyRevenue] = {}
    for invoice in invoices:
        label = month_label(invoice.get("invoiceDate"))
        if label is None:
            continue
        entry = months.setdefault(label, MonthlyRevenue(month=label, revenue=0, pending=0))
        if invoice.get("paymentStatus") == PaymentStatus.paid.value:
            entry.revenue += _total(invoice)
        else:
            entry.pending += _total(invoice)
    return [months[label] for label in sorted(months, key=month_sort_key)]


def client_acquisition(clients: Records) -> List[MonthlyCount]:
    counts = Counter(label for label in (month_label(c.get("createdAt")) for c in clients) if label)
    return [MonthlyCount(month=label, count=counts[label]) for label in sorted(counts, key=month_sort_key)]


def advocate_workload(users: Records, matters: Records) -> List[WorkloadEntry]:
    advocates = [normalize_user(u) for u in users]
    advocates = [a for a in advocates if a.is_advocate]
    active = [normalize_matter(m) for m in matters if m.get("status") in ACTIVE_STATUSES]
    return [
        WorkloadEntry(
            advocateId=advocate.id,
            name=advocate.name,
            activeCases=sum(1 for m in active if m.assigned_lawyer_id == advocate.id),
        )
        for advocate in advocates
    ]


def case_outcomes(cases: Records) -> List[OutcomeCount]:
    closed = [c for c in cases if c.get("status") == CaseStatus.closed.value]
    counts = Counter((c.get("closedOutcome") or "Unknown") for c in closed)
    return [OutcomeCount(outcome=o, value=v) for o, v in counts.most_common()]


def case_types(cases: Records, top: int = 6, min_percent: float = 2.0) -> List[StatusCount]:
    """Case types by count; the tail beyond ``top`` or under ``min_percent`` becomes "Other"."""
    counts = Counter(normalize_matter(c).caseType or "General" for c in cases)
    total = sum(counts.values())
    kept: List[StatusCount] = []
    other = 0
    for name, value in counts.most_common():
        if len(kept) >= top or value * 100 / total < min_percent:
            other += value
        else:
            kept.append(StatusCount(status=name, value=value))
    if other:
        kept.append(StatusCount(status="Other", value=other))
    return kept


async def _all(store: DocumentStore, path: str) -> Records:
    return [s.to_dict() for s in await store.get_collection(path)]


async def dashboard_summary(store: DocumentStore, now: Optional[datetime] = None) -> DashboardSummary:
    now = now or utcnow()
    invoices = await _all(store, collections.INVOICES)
    clients = await _all(store, collections.CLIENTS)
    files = await _all(store, collections.FILES)
    cases = await _all(store, collections.CASES)
    appointments = await _all(store, collections.APPOINTMENTS)
    users = await _all(store, collections.USERS)
    activities = [
        s.to_dict()
        for s in await store.get_collection(
            collections.ACTIVITIES,
            order_by=("timestamp", DESCENDING),
            limit=settings.RECENT_ACTIVITY_LIMIT,
        )
    ]

    return DashboardSummary(
        totalRevenue=total_revenue(invoices),
        clientCount=len(clients),
        fileCount=len(files),
        caseCount=len(cases),
        appointmentCount=len(appointments),
        upcomingAppointments=joiner.join_appointments(
            upcoming(appointments, now, settings.UPCOMING_APPOINTMENTS_LIMIT), clients, users
        ),
        recentFiles=joiner.join_files(
            most_recent(files, "openingDate", settings.RECENT_FILES_LIMIT), clients, users, now
        ),
        fileStatus=status_counts(files, "status", CaseStatus.open.value),
        recentActivities=joiner.join_activities(activities, users, now),
    )


async def report_summary(store: DocumentStore) -> ReportSummary:
    users = await _all(store, collections.USERS)
    files = await _all(store, collections.FILES)
    cases = await _all(store, collections.CASES)
    clients = await _all(store, collections.CLIENTS)
    invoices = await _all(store, collections.INVOICES)

    advocates = [
        u for u in users if normalize_role(u.get("role")) in (UserRole.admin.value, UserRole.lawyer.value)
    ]
    logger.info(f"Building report over {len(cases) + len(files)} matters and {len(invoices)} invoices")
    return ReportSummary(
        totalClients=len(clients),
        totalFiles=len(files),
        totalInvoices=len(invoices),
        totalAdvocates=len(advocates),
        revenueByMonth=revenue_by_month(invoices),
        invoiceStatus=status_counts(invoices, "paymentStatus", PaymentStatus.unpaid.value),
        advocateWorkload=advocate_workload(advocates, cases + files),
        clientAcquisition=client_acquisition(clients),
        caseOutcomes=case_outcomes(cases),
        caseTypes=case_types(cases),
    )
