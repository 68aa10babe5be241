"""ORM models - import all so Base.metadata is complete for migrations."""

from app.models.family import FamilyDocument

__all__ = [
    "FamilyDocument",
]
