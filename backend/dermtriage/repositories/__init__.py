"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for CRUD operations on domain objects.
"""

from dermtriage.repositories.profile import ProfileRepository
from dermtriage.repositories.report import ReportRepository

__all__ = ["ProfileRepository", "ReportRepository"]
