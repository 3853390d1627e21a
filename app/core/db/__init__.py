# Models register themselves on Base.metadata when their module is imported.
# Feature models are imported by their routers (see app/main.py) and by
# alembic/env.py; importing them here would make every model import cycle
# back through this package.

from app.core.db.base import Base, BaseModel

__all__ = ["Base", "BaseModel"]
