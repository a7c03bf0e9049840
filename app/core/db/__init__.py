# Models register themselves on Base.metadata when their module is imported;
# importing them here would be circular (each model imports app.core.db.base).
# Use load_models() wherever the full metadata is needed.

from app.core.db.base import Base, BaseModel


def load_models():
    """Import every model module so relationships and create_all see all tables."""
    from app.modules.users.models import User
    from app.modules.reports.models import ReportGroup, ReportRowRecord

    return [User, ReportGroup, ReportRowRecord]


__all__ = ["Base", "BaseModel", "load_models"]
