"""Service package public API definitions.

Service implementations are imported lazily so that importing
``crm_app.services.exceptions`` from the HTTP client does not pull in the
services, which themselves depend on ``crm_app.clients.crm_api``.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "CommentService",
    "DashboardService",
    "LeadService",
    "ReferenceService",
    "ReportService",
    "SalespersonService",
    "TagService",
]

_SERVICE_MODULES = {
    "CommentService": "comments",
    "DashboardService": "dashboard",
    "LeadService": "leads",
    "ReferenceService": "reference",
    "ReportService": "reports",
    "SalespersonService": "salespersons",
    "TagService": "tags",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .comments import CommentService as CommentService
    from .dashboard import DashboardService as DashboardService
    from .leads import LeadService as LeadService
    from .reference import ReferenceService as ReferenceService
    from .reports import ReportService as ReportService
    from .salespersons import SalespersonService as SalespersonService
    from .tags import TagService as TagService
