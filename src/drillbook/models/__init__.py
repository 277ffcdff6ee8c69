"""Pydantic v2 models for drillbook.

Re-exports from submodules so ``from drillbook.models import X`` keeps working.
"""

from drillbook.models.requests import (  # noqa: F401
    CommandCreate,
    CommandUpdate,
    FileCreate,
    NoteCreate,
    PlanCreate,
    PlanUpdate,
)
from drillbook.models.storage import (  # noqa: F401
    Command,
    EventKind,
    File,
    Flight,
    FlightAssignment,
    HistoryEntry,
    Note,
    Plan,
    ensure_utc,
    new_id,
    utcnow,
)
from drillbook.models.views import (  # noqa: F401
    CommandSummary,
    PlanDetail,
    PlanWithCommand,
    PruneReport,
)
