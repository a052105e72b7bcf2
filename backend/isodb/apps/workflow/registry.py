from __future__ import annotations

from .guards import approval_recorded, owner_assigned

# state -> {reachable state: guards}. Manuals retire to ARCHIVED;
# procedures and documents to OBSOLETE.
WORKFLOWS = {
    "manual": {
        "draft": {"review": ()},
        "review": {"approved": (approval_recorded,)},
        "approved": {"archived": ()},
        "archived": {},
    },
    "procedure": {
        "draft": {"review": ()},
        "review": {"approved": (owner_assigned,)},
        "approved": {"obsolete": ()},
        "obsolete": {},
    },
    "document": {
        "draft": {"review": ()},
        "review": {"approved": (approval_recorded,)},
        "approved": {"obsolete": ()},
        "obsolete": {},
    },
}

EDITABLE_STATES = frozenset({"draft", "review"})
