from app.db.models.stored_document import StoredDocument

# Export all models
__all__ = [
    'StoredDocument',
]
