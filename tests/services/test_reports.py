from datetime import datetime, timezone
import pytest

from app.services.reports import (
    advocate_workload,
    case_outcomes,
    case_types,
    dashboard_summary,
    report_summary,
    revenue_by_month,
    total_revenue,
    upcoming,
)
from app.services.search import global_search
from app.services.seed import seed_sample_data
from tests.conftest import LAWYER_ID


@pytest.fixture
async def sample_store(seeded_store):
    await seed_sample_data(seeded_store, lawyer_id=LAWYER_ID)
    return seeded_store


class TestAggregates:
    def test_total_revenue_counts_paid_only(self):
        invoices = [
            {"paymentStatus": "Paid", "items": [{"description": "Fee", "amount": 100}, {"description": "x", "amount": 50}]},
            {"paymentStatus": "Unpaid", "amount": 999},
            {"paymentStatus": "Paid", "amount": "25"},
        ]
        assert total_revenue(invoices) == 175

    def test_revenue_by_month_is_chronological(self):
        invoices = [
            {"invoiceDate": "2024-03-02", "paymentStatus": "Paid", "amount": 10},
            {"invoiceDate": "2023-12-30", "paymentStatus": "Unpaid", "amount": 5},
            {"invoiceDate": "2024-03-20", "paymentStatus": "Overdue", "amount": 7},
            {"paymentStatus": "Paid", "amount": 1000},
        ]
        months = revenue_by_month(invoices)
        assert [(m.month, m.revenue, m.pending) for m in months] == [
            ("Dec 2023", 0, 5),
            ("Mar 2024", 10, 7),
        ]

    def test_upcoming_skips_past(self):
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        appointments = [
            {"id": "A1", "startTime": "2024-06-03T09:00:00Z"},
            {"id": "A2", "startTime": "2024-05-01T09:00:00Z"},
            {"id": "A3", "startTime": "2024-06-02T09:00:00Z"},
        ]
        assert [a["id"] for a in upcoming(appointments, now, 5)] == ["A3", "A1"]

    def test_workload_counts_active_matters_of_first_assignee(self):
        users = [{"id": "U1", "firstName": "Lou", "role": "lawyer"}, {"id": "S1", "role": "secretary"}]
        matters = [
            {"id": "K1", "status": "Open", "assignedPersonnelIds": ["U1"]},
            {"id": "K2", "status": "In Progress", "assignedPersonnelIds": ["U1", "U2"]},
            {"id": "K3", "status": "Closed", "assignedPersonnelIds": ["U1"]},
            {"id": "K4", "status": "Open", "assignedPersonnelIds": ["U2", "U1"]},
        ]
        workload = advocate_workload(users, matters)
        assert [(w.advocateId, w.activeCases) for w in workload] == [("U1", 2)]

    def test_case_outcomes_default_unknown(self):
        cases = [
            {"id": "K1", "status": "Closed", "closedOutcome": "Win"},
            {"id": "K2", "status": "Closed"},
            {"id": "K3", "status": "Open", "closedOutcome": "Loss"},
        ]
        assert {o.outcome: o.value for o in case_outcomes(cases)} == {"Win": 1, "Unknown": 1}

    def test_case_types_group_small_tail(self):
        cases = [{"id": f"K{i}", "caseName": f"Type{i % 8} matter"} for i in range(8)]
        types = case_types(cases, top=6)
        assert len(types) == 7
        assert types[-1].status == "Other"
        assert types[-1].value == 2


class TestSummaries:
    async def test_dashboard_over_sample_data(self, sample_store):
        summary = await dashboard_summary(sample_store)
        assert summary.totalRevenue == 5000
        assert summary.clientCount == 5
        assert summary.fileCount == 5
        assert {s.status: s.value for s in summary.fileStatus} == {
            "In Progress": 2, "Open": 1, "Closed": 1, "On Hold": 1,
        }
        assert len(summary.recentFiles) == 5
        assert summary.recentFiles[0].assignedLawyer == "Lou Lawyer"

    async def test_report_over_sample_data(self, sample_store):
        report = await report_summary(sample_store)
        assert report.totalClients == 5
        assert report.totalInvoices == 3
        assert {s.status: s.value for s in report.invoiceStatus} == {"Paid": 1, "Unpaid": 1, "Overdue": 1}
        workload = {w.advocateId: w.activeCases for w in report.advocateWorkload}
        assert workload[LAWYER_ID] == 3

    async def test_seeding_only_fills_empty_store(self, sample_store):
        assert await seed_sample_data(sample_store) == {}
        assert len(await sample_store.get_collection("clients")) == 5


class TestSearch:
    async def test_matches_across_collections(self, sample_store):
        results = await global_search(sample_store, "JANE")
        assert [(r.kind, r.id) for r in results.results] == [("client", "CLI-002"), ("invoice", "INV-002")]

    async def test_matches_file_titles(self, sample_store):
        results = await global_search(sample_store, "litigation")
        assert [r.href for r in results.results] == ["/dashboard/files/FILE-003"]

    async def test_blank_query(self, sample_store):
        assert (await global_search(sample_store, "   ")).results == []
