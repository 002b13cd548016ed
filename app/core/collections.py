"""Collection names and paths.

The store has no schema; these names are the contract with existing stored
data and must not change.
"""

CLIENTS = "clients"
CASES = "cases"
FILES = "files"
USERS = "users"
APPOINTMENTS = "appointments"
INVOICES = "invoices"
RECEIPTS = "receipts"
ACTIVITIES = "activities"
SETTINGS = "settings"

# Subcollections
DOCUMENTS = "documents"
NOTIFICATIONS = "notifications"

# Cases and files share one shape and differ only in their collection.
MATTER_COLLECTIONS = (CASES, FILES)


def doc_path(collection: str, doc_id: str) -> str:
    return f"{collection}/{doc_id}"


def documents_path(matter_collection: str, matter_id: str) -> str:
    return f"{matter_collection}/{matter_id}/{DOCUMENTS}"


def notifications_path(user_id: str) -> str:
    return f"{USERS}/{user_id}/{NOTIFICATIONS}"
