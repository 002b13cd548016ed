"""Joined rows and aggregate views returned by the dashboard endpoints."""

from typing import Dict, List, Optional
from pydantic import BaseModel

from app.schemas.activity import ActivityRow
from app.schemas.appointment import Appointment
from app.schemas.case import Matter
from app.schemas.client import Client
from app.schemas.document import Attachment
from app.schemas.invoice import Invoice
from app.schemas.receipt import Receipt
from app.schemas.user import User


class MatterRow(Matter):
    clientName: str
    assignedLawyer: str
    assignedLawyerId: Optional[str] = None
    lastActivity: str


class AppointmentRow(Appointment):
    clientName: str
    userName: str


class InvoiceRow(Invoice):
    clientName: str
    total: float
    balanceDue: float


class ReceiptRow(Receipt):
    clientName: str


class MatterDetail(BaseModel):
    matter: MatterRow
    client: Optional[Client] = None
    lawyer: Optional[User] = None
    documents: List[Attachment] = []


class ClientDetail(BaseModel):
    client: Client
    displayName: str
    cases: List[MatterRow] = []
    files: List[MatterRow] = []
    invoices: List[InvoiceRow] = []


class FirmSettings(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    footerText: Optional[str] = None
    signatory: Optional[str] = None


class InvoiceDetail(BaseModel):
    invoice: InvoiceRow
    client: Optional[Client] = None
    firm: Optional[FirmSettings] = None


class ReceiptDetail(BaseModel):
    receipt: ReceiptRow
    invoice: Optional[Invoice] = None


class StatusCount(BaseModel):
    status: str
    value: int


class MonthlyRevenue(BaseModel):
    month: str
    revenue: float
    pending: float


class MonthlyCount(BaseModel):
    month: str
    count: int


class WorkloadEntry(BaseModel):
    advocateId: str
    name: str
    activeCases: int


class OutcomeCount(BaseModel):
    outcome: str
    value: int


class DashboardSummary(BaseModel):
    totalRevenue: float
    clientCount: int
    fileCount: int
    caseCount: int
    appointmentCount: int
    upcomingAppointments: List[AppointmentRow]
    recentFiles: List[MatterRow]
    fileStatus: List[StatusCount]
    recentActivities: List[ActivityRow]


class ReportSummary(BaseModel):
    totalClients: int
    totalFiles: int
    totalInvoices: int
    totalAdvocates: int
    revenueByMonth: List[MonthlyRevenue]
    invoiceStatus: List[StatusCount]
    advocateWorkload: List[WorkloadEntry]
    clientAcquisition: List[MonthlyCount]
    caseOutcomes: List[OutcomeCount]
    caseTypes: List[StatusCount]


class NavItem(BaseModel):
    section: str
    href: str
    label: str


class Navigation(BaseModel):
    role: str
    items: List[NavItem]
    actions: Dict[str, bool]


class SearchResult(BaseModel):
    kind: str
    id: str
    label: str
    href: str


class SearchResults(BaseModel):
    query: str
    results: List[SearchResult]
