"""
AlumniHub — Alumni management portal core.

Role-based workflows for administrators and alumni:
document submission with bounded-retry upload, admin approval,
messaging, event and job boards, and an FAQ assistant.

The view layer is external: it dispatches ``Action`` values through
``alumnihub.actions.PortalDispatcher`` and renders ``snapshot()`` results.
"""

__version__ = "1.0.0"
__all__ = [
    "actions",
    "assistant",
    "boards",
    "dashboard",
    "documents",
    "engine",
    "messaging",
    "state",
    "storage",
]
