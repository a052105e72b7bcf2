# backend/isodb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- String relationship targets ("Manual", "Procedure", ...) resolve no
  matter which app module is imported first.

The actual model classes are kept in isodb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users
from .apps.revisions import models as revisions_models        # revision ledger
from .apps.manuals import models as manuals_models            # manuals + sections
from .apps.procedures import models as procedures_models      # procedures
from .apps.documents import models as documents_models        # documents

__all__ = [
    "accounts_models",
    "revisions_models",
    "manuals_models",
    "procedures_models",
    "documents_models",
]
