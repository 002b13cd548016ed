"""Global search: a case-insensitive scan over clients, files and invoices."""

import logging
from typing import List

from app.core import collections
from app.schemas.client import client_display_name, normalize_client
from app.schemas.invoice import normalize_invoice
from app.schemas.case import normalize_matter
from app.schemas.views import SearchResult, SearchResults
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)


def _matches(query: str, *values) -> bool:
    return any(query in str(value).lower() for value in values if value)


async def global_search(store: DocumentStore, query: str, limit: int = 20) -> SearchResults:
    needle = query.strip().lower()
    if not needle:
        return SearchResults(query=query, results=[])

    results: List[SearchResult] = []
    for snapshot in await store.get_collection(collections.CLIENTS):
        client = normalize_client(snapshot.to_dict())
        label = client_display_name(client, client.email or client.id)
        if _matches(needle, label, client.email, client.phoneNumber):
            results.append(
                SearchResult(kind="client", id=client.id, label=label, href=f"/dashboard/clients/{client.id}")
            )

    for snapshot in await store.get_collection(collections.FILES):
        matter = normalize_matter(snapshot.to_dict(), collections.FILES)
        if _matches(needle, matter.name, matter.description):
            results.append(
                SearchResult(kind="file", id=matter.id, label=matter.name, href=f"/dashboard/files/{matter.id}")
            )

    for snapshot in await store.get_collection(collections.INVOICES):
        invoice = normalize_invoice(snapshot.to_dict())
        if _matches(needle, invoice.reference, invoice.clientName, invoice.description, invoice.id):
            results.append(
                SearchResult(
                    kind="invoice",
                    id=invoice.id,
                    label=invoice.reference or invoice.clientName or invoice.id,
                    href=f"/dashboard/invoices/{invoice.id}",
                )
            )

    logger.debug(f"Search '{query}' matched {len(results)} records")
    return SearchResults(query=query, results=results[:limit])
