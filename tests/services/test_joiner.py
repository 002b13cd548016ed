import copy
from datetime import datetime, timedelta, timezone

from app.core import collections
from app.services import joiner

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

CLIENTS = [
    {"id": "C1", "firstName": "John", "lastName": "Doe"},
    {"id": "C2", "name": "  Acme Holdings  "},
]
USERS = [
    {"id": "U1", "firstName": "Lou", "lastName": "Lawyer", "role": "lawyer"},
]


class TestJoinMatters:
    def test_every_input_row_appears_once(self):
        cases = [
            {"id": "K1", "caseName": "Estate of Doe", "clientId": "C1", "assignedPersonnelIds": ["U1"]},
            {"id": "K2", "caseName": "Lease dispute", "clientId": "C2"},
            {"id": "K3", "caseName": "Orphan", "clientId": "missing"},
        ]
        rows = joiner.join_cases(cases, CLIENTS, USERS, NOW)
        assert [r.id for r in rows] == ["K1", "K2", "K3"]

    def test_resolves_client_and_lawyer(self):
        cases = [{
            "id": "K1",
            "caseName": "Estate of Doe",
            "clientId": "C1",
            "assignedPersonnelIds": ["U1"],
            "filingDate": (NOW - timedelta(days=3)).isoformat(),
        }]
        row = joiner.join_cases(cases, CLIENTS, USERS, NOW)[0]
        assert row.clientName == "John Doe"
        assert row.assignedLawyer == "Lou Lawyer"
        assert row.assignedLawyerId == "U1"
        assert row.lastActivity == "3 days ago"

    def test_composite_name_is_trimmed(self):
        row = joiner.join_files([{"id": "F1", "fileName": "Lease", "clientId": "C2"}], CLIENTS, USERS, NOW)[0]
        assert row.clientName == "Acme Holdings"
        assert row.kind == collections.FILES

    def test_missing_client_falls_back_to_unknown(self):
        cases = [
            {"id": "K1", "caseName": "First", "clientId": "C1"},
            {"id": "K2", "caseName": "Second", "clientId": "C1"},
        ]
        rows = joiner.join_cases(cases, [], USERS, NOW)
        assert [r.clientName for r in rows] == ["Unknown", "Unknown"]

    def test_lookups_not_loaded_yet(self):
        row = joiner.join_cases([{"id": "K1", "caseName": "First", "clientId": "C1"}], None, None, NOW)[0]
        assert row.clientName == "Unknown"
        assert row.assignedLawyer == "Unassigned"
        assert row.lastActivity == "N/A"

    def test_inputs_are_not_mutated(self):
        cases = [{"id": "K1", "caseName": "First", "clientId": "C1", "assignedPersonnelIds": ["U1"]}]
        before = (copy.deepcopy(cases), copy.deepcopy(CLIENTS), copy.deepcopy(USERS))
        first = joiner.join_cases(cases, CLIENTS, USERS, NOW)
        second = joiner.join_cases(cases, CLIENTS, USERS, NOW)
        assert (cases, CLIENTS, USERS) == before
        assert first == second

    def test_relative_time_follows_the_given_clock(self):
        cases = [{"id": "K1", "caseName": "First", "clientId": "C1", "openingDate": (NOW - timedelta(hours=2)).isoformat()}]
        now_row = joiner.join_cases(cases, CLIENTS, USERS, NOW)[0]
        later_row = joiner.join_cases(cases, CLIENTS, USERS, NOW + timedelta(days=3))[0]
        assert now_row.lastActivity == "about 2 hours ago"
        assert later_row.lastActivity != now_row.lastActivity


class TestJoinBilling:
    def test_invoice_totals_come_from_items(self):
        invoices = [{
            "id": "INV1",
            "clientId": "C1",
            "items": [{"description": "Fee", "amount": "3000"}, {"description": "Filing", "amount": 500}],
            "paymentStatus": "Unpaid",
        }]
        row = joiner.join_invoices(invoices, CLIENTS)[0]
        assert row.clientName == "John Doe"
        assert row.total == 3500
        assert row.balanceDue == 3500

    def test_paid_invoice_has_nothing_due(self):
        invoices = [{"id": "INV1", "clientId": "nobody", "amount": 900, "paymentStatus": "Paid"}]
        row = joiner.join_invoices(invoices, CLIENTS)[0]
        assert row.clientName == "Unknown Client"
        assert row.balanceDue == 0

    def test_receipt_keeps_stored_client_name(self):
        receipts = [{"id": "R1", "invoiceId": "INV1", "clientId": "gone", "clientName": "Jane Roe", "amountPaid": 10}]
        assert joiner.join_receipts(receipts, CLIENTS)[0].clientName == "Jane Roe"


class TestJoinOther:
    def test_appointments_fallbacks(self):
        appointments = [{"id": "A1", "title": "Call", "clientId": "x", "userId": "y"}]
        row = joiner.join_appointments(appointments, CLIENTS, USERS)[0]
        assert row.clientName == "Unknown Client"
        assert row.userName == "Unknown User"

    def test_activities_resolve_actor(self):
        activities = [
            {"id": "E1", "message": "New client", "actorId": "U1", "timestamp": (NOW - timedelta(hours=2)).isoformat()},
            {"id": "E2", "message": "Consultation", "actorName": "Website Visitor", "timestamp": {"seconds": NOW.timestamp() - 60}},
        ]
        rows = joiner.join_activities(activities, USERS, NOW)
        assert rows[0].user == "Lou Lawyer"
        assert rows[0].prettyTime == "about 2 hours ago"
        assert rows[1].user == "Website Visitor"

    def test_client_detail_only_keeps_own_records(self):
        detail = joiner.join_documents_for_client(
            CLIENTS[0],
            cases=[{"id": "K1", "caseName": "Mine", "clientId": "C1"}, {"id": "K2", "caseName": "Theirs", "clientId": "C2"}],
            files=[{"id": "F1", "fileName": "Mine too", "clientId": "C1"}],
            invoices=[{"id": "INV1", "clientId": "C2", "amount": 10}],
            users=USERS,
            now=NOW,
        )
        assert detail.displayName == "John Doe"
        assert [c.id for c in detail.cases] == ["K1"]
        assert [f.id for f in detail.files] == ["F1"]
        assert detail.invoices == []
