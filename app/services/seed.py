"""
Sample data for demos and local development.

Seeding writes into the store it is given and only when the clients
collection is empty, so running it against a populated store does nothing.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from app.core import collections
from app.store.base import DocumentStore
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

SAMPLE_CLIENTS = [
    ("CLI-001", "John", "Doe", "john.doe@example.com", "555-0101", "123 Main St, Anytown"),
    ("CLI-002", "Jane", "Smith", "jane.smith@example.com", "555-0102", "456 Oak Ave, Anytown"),
    ("CLI-003", "Peter", "Jones", "peter.jones@example.com", "555-0103", "789 Pine Ln, Anytown"),
    ("CLI-004", "Mary", "Johnson", "mary.j@example.com", "555-0104", "101 Maple Dr, Anytown"),
    ("CLI-005", "David", "Williams", "david.w@example.com", "555-0105", "212 Birch Rd, Anytown"),
]

# (id, title, client, status, days since opening)
SAMPLE_FILES = [
    ("FILE-001", "Corporate Restructuring", "CLI-001", "In Progress", 2),
    ("FILE-002", "Intellectual Property", "CLI-002", "Open", 1),
    ("FILE-003", "Litigation Dispute", "CLI-003", "Closed", 30),
    ("FILE-004", "Real Estate Transaction", "CLI-001", "On Hold", 7),
    ("FILE-005", "Mergers and Acquisitions", "CLI-005", "In Progress", 1),
]


async def seed_sample_data(store: DocumentStore, lawyer_id: Optional[str] = None) -> Dict[str, int]:
    """Write the sample clients, files, invoices and receipt; returns counts per collection."""
    if await store.get_collection(collections.CLIENTS, limit=1):
        logger.info("Store already has clients, skipping sample data")
        return {}

    now = utcnow()
    names = {}
    for client_id, first, last, email, phone, address in SAMPLE_CLIENTS:
        names[client_id] = f"{first} {last}"
        await store.set_document(
            collections.doc_path(collections.CLIENTS, client_id),
            {
                "firstName": first,
                "lastName": last,
                "name": names[client_id],
                "email": email,
                "phoneNumber": phone,
                "address": address,
                "createdAt": (now - timedelta(days=60)).isoformat(),
            },
        )

    assigned: List[str] = [lawyer_id] if lawyer_id else []
    for file_id, title, client_id, status, age in SAMPLE_FILES:
        await store.set_document(
            collections.doc_path(collections.FILES, file_id),
            {
                "fileName": title,
                "fileDescription": "",
                "clientId": client_id,
                "assignedPersonnelIds": assigned,
                "status": status,
                "openingDate": (now - timedelta(days=age)).isoformat(),
            },
        )

    invoices = [
        ("INV-001", "CLI-001", 5000, "Paid"),
        ("INV-002", "CLI-002", 12000, "Unpaid"),
        ("INV-003", "CLI-003", 7500, "Overdue"),
    ]
    for invoice_id, client_id, amount, status in invoices:
        await store.set_document(
            collections.doc_path(collections.INVOICES, invoice_id),
            {
                "clientId": client_id,
                "clientName": names[client_id],
                "items": [{"description": "Professional fees", "amount": amount}],
                "amount": amount,
                "amountPaid": amount if status == "Paid" else 0,
                "balance": 0 if status == "Paid" else amount,
                "invoiceDate": (now - timedelta(days=20)).isoformat(),
                "dueDate": (now + timedelta(days=10)).isoformat(),
                "paymentStatus": status,
                "reference": invoice_id,
            },
        )

    await store.set_document(
        collections.doc_path(collections.RECEIPTS, "REC-001"),
        {
            "invoiceId": "INV-001",
            "clientId": "CLI-001",
            "clientName": names["CLI-001"],
            "amountPaid": 5000,
            "paymentDate": (now - timedelta(days=15)).isoformat(),
            "paymentMethod": "Bank Transfer",
            "reference": "INV-001",
        },
    )

    counts = {
        collections.CLIENTS: len(SAMPLE_CLIENTS),
        collections.FILES: len(SAMPLE_FILES),
        collections.INVOICES: len(invoices),
        collections.RECEIPTS: 1,
    }
    logger.info(f"Seeded sample data: {counts}")
    return counts
