from app.api.api_v1.endpoints.matters import build_router
from app.core import collections

router = build_router(collections.CASES)
