from app.db.base_class import Base
from app.db.models.stored_document import StoredDocument

# All models are imported here for SQLAlchemy to discover them
