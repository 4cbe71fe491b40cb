"""
Dashboard figures for the admin and alumni home views.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from alumnihub.documents.models import DocumentStatus
from alumnihub.engine.identity import Role

if TYPE_CHECKING:
    from alumnihub.state import AppState


def admin_dashboard(state: "AppState") -> Dict[str, int]:
    return {
        "total_alumni": len(state.identities.list_identities(Role.ALUMNI)),
        "pending_documents": len(state.documents.pending()),
        "active_events": len(state.events.active_events()),
        "total_donations": state.fundraising.total_donations,
    }


def alumni_dashboard(state: "AppState", email: str) -> Dict[str, int]:
    return {
        "my_documents": len(state.documents.list(owner=email)),
        "pending_approvals": len(state.documents.list(status=DocumentStatus.PENDING, owner=email)),
        "upcoming_events": len(state.events.active_events()),
        "job_applications": len(state.jobs.applications_by(email)),
    }
