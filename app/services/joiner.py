"""
View-model joiner.

Every list page works from several raw collections fetched (or pushed) from
the store: cases plus the clients and users they reference, invoices plus
their clients, and so on. The functions here attach the display fields each
page needs by matching the string id fields against the lookup collections.

They are pure: no I/O, no state between calls, and the input records are
never mutated. A lookup collection that has not arrived yet may be passed as
``None`` and is treated as empty, which yields the fallback labels rather than
an error. Relative times ("2 hours ago") are computed against the ``now``
argument, never the wall clock. Lookups are linear scans; collections are
expected to stay small.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.core import collections
from app.schemas.activity import ActivityRow, normalize_activity
from app.schemas.appointment import normalize_appointment
from app.schemas.case import normalize_matter
from app.schemas.client import UNKNOWN_CLIENT, Client, client_display_name, normalize_client
from app.schemas.invoice import PaymentStatus, invoice_total, normalize_invoice
from app.schemas.receipt import normalize_receipt
from app.schemas.user import UNASSIGNED, UNKNOWN_USER, User, normalize_user, user_display_name
from app.schemas.views import AppointmentRow, ClientDetail, InvoiceRow, MatterRow, ReceiptRow
from app.utils.dates import time_ago

# Case and file rows show this when the client cannot be resolved
UNKNOWN = "Unknown"

Records = Optional[Iterable[Dict[str, Any]]]


def _records(records: Records) -> List[Dict[str, Any]]:
    return [r for r in (records or []) if isinstance(r, dict) and r.get("id")]


def find_by_id(records: Records, record_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not record_id:
        return None
    for record in records or []:
        if isinstance(record, dict) and record.get("id") == record_id:
            return record
    return None


def _client(clients: Records, client_id: Optional[str]) -> Optional[Client]:
    raw = find_by_id(clients, client_id)
    return normalize_client(raw) if raw else None


def _user(users: Records, user_id: Optional[str]) -> Optional[User]:
    raw = find_by_id(users, user_id)
    return normalize_user(raw) if raw else None


def join_matters(
    matters: Records,
    clients: Records,
    users: Records,
    now: datetime,
    kind: str = collections.CASES,
) -> List[MatterRow]:
    """Attach client name, assigned lawyer and last activity to cases or files."""
    rows = []
    for raw in _records(matters):
        matter = normalize_matter(raw, kind)
        lawyer_id = matter.assigned_lawyer_id
        rows.append(
            MatterRow(
                **matter.model_dump(),
                clientName=client_display_name(_client(clients, matter.clientId), UNKNOWN),
                assignedLawyer=user_display_name(_user(users, lawyer_id), UNASSIGNED),
                assignedLawyerId=lawyer_id,
                lastActivity=time_ago(matter.openedAt, now),
            )
        )
    return rows


def join_cases(cases: Records, clients: Records, users: Records, now: datetime) -> List[MatterRow]:
    return join_matters(cases, clients, users, now, kind=collections.CASES)


def join_files(files: Records, clients: Records, users: Records, now: datetime) -> List[MatterRow]:
    return join_matters(files, clients, users, now, kind=collections.FILES)


def join_appointments(
    appointments: Records, clients: Records = None, users: Records = None
) -> List[AppointmentRow]:
    rows = []
    for raw in _records(appointments):
        appointment = normalize_appointment(raw)
        rows.append(
            AppointmentRow(
                **appointment.model_dump(),
                clientName=client_display_name(_client(clients, appointment.clientId), UNKNOWN_CLIENT),
                userName=user_display_name(_user(users, appointment.userId), UNKNOWN_USER),
            )
        )
    return rows


def balance_due(invoice) -> float:
    if invoice.paymentStatus == PaymentStatus.paid.value:
        return 0.0
    if invoice.balance is not None:
        return max(float(invoice.balance), 0.0)
    return max(invoice_total(invoice.items, invoice.amount) - invoice.amountPaid, 0.0)


def join_invoices(invoices: Records, clients: Records = None) -> List[InvoiceRow]:
    rows = []
    for raw in _records(invoices):
        invoice = normalize_invoice(raw)
        data = invoice.model_dump()
        data["clientName"] = client_display_name(_client(clients, invoice.clientId), UNKNOWN_CLIENT)
        rows.append(
            InvoiceRow(
                **data,
                total=invoice_total(invoice.items, invoice.amount),
                balanceDue=balance_due(invoice),
            )
        )
    return rows


def join_receipts(receipts: Records, clients: Records = None) -> List[ReceiptRow]:
    rows = []
    for raw in _records(receipts):
        receipt = normalize_receipt(raw)
        data = receipt.model_dump()
        # The name copied onto the receipt at payment time beats the fallback
        data["clientName"] = client_display_name(
            _client(clients, receipt.clientId), receipt.clientName or UNKNOWN_CLIENT
        )
        rows.append(ReceiptRow(**data))
    return rows


def join_activities(activities: Records, users: Records, now: datetime) -> List[ActivityRow]:
    rows = []
    for raw in _records(activities):
        activity = normalize_activity(raw)
        actor = _user(users, activity.actorId)
        rows.append(
            ActivityRow(
                **activity.model_dump(),
                user=user_display_name(actor, activity.actorName),
                prettyTime=time_ago(activity.timestamp, now),
            )
        )
    return rows


def join_documents_for_client(
    client: Dict[str, Any],
    cases: Records = None,
    files: Records = None,
    invoices: Records = None,
    users: Records = None,
    *,
    now: datetime,
) -> ClientDetail:
    """Client detail page: the client plus its own cases, files and invoices."""
    normalized = normalize_client(client)
    client_id = normalized.id

    def owned(records: Records) -> List[Dict[str, Any]]:
        return [r for r in _records(records) if r.get("clientId") == client_id]

    clients = [client]
    return ClientDetail(
        client=normalized,
        displayName=client_display_name(normalized, UNKNOWN_CLIENT),
        cases=join_cases(owned(cases), clients, users, now),
        files=join_files(owned(files), clients, users, now),
        invoices=join_invoices(owned(invoices), clients),
    )
