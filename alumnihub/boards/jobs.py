"""
AlumniHub Job Board — admin job postings and alumni applications.

Applications are not deduplicated: applying twice records two applications.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, List, Optional

from alumnihub.boards.base import RecordBoard
from alumnihub.boards.models import BoardStatus, JobApplication, JobRecord
from alumnihub.engine.identity import ADMIN_ADDRESS, Identity, IdentityStore, Role
from alumnihub.engine.logging import log, log_board_event
from alumnihub.engine.security import require_role
from alumnihub.messaging.store import Notifier

logger = logging.getLogger("alumnihub.boards.jobs")


class JobBoard(RecordBoard[JobRecord]):

    record_type = "job"
    editable_fields = frozenset({
        "title", "company", "location", "salary", "deadline", "description", "requirements",
    })

    def __init__(
        self,
        jobs: Optional[Iterable[JobRecord]] = None,
        applications: Optional[Iterable[JobApplication]] = None,
        notifier: Optional[Notifier] = None,
        identity_store: Optional[IdentityStore] = None,
    ):
        super().__init__(jobs, notifier=notifier, identity_store=identity_store)
        self._applications: List[JobApplication] = list(applications or [])

    def create_job(
        self,
        actor: Optional[Identity],
        title: str,
        company: str,
        deadline: dt.date,
        location: str = "",
        salary: str = "",
        description: str = "",
        requirements: str = "",
    ) -> JobRecord:
        """Post a new active job and announce it to every alumni."""
        actor = require_role(actor, Role.ADMIN, action="create_job")
        job = self._build(
            JobRecord,
            title=title,
            company=company,
            deadline=deadline,
            location=location,
            salary=salary,
            description=description,
            requirements=requirements,
            created_by=actor.email,
        )
        self._add(job)
        sent = self._announce(f"New job: {job.title} at {job.company} - apply now on the job board!")
        log(log_board_event("jobs", "job_created", job.id, company=job.company, notified=sent))
        logger.info(f"Job {job.id} posted by {actor.email}, {sent} alumni notified")
        return job

    def update_job(self, actor: Optional[Identity], job_id: str, **fields) -> JobRecord:
        return self.update(actor, job_id, **fields)

    def toggle_job(self, actor: Optional[Identity], job_id: str) -> JobRecord:
        return self.toggle(actor, job_id)

    def apply(self, job_id: str, identity: Identity) -> JobApplication:
        """
        Record an application and tell the admin about it.

        Raises:
            PortalNotFoundError: unknown job.
            InvalidTransitionError: job is inactive.
        """
        with self._lock:
            job = self.get(job_id)
            self._require_active(job)
            application = JobApplication(
                job_id=job.id,
                job_title=job.title,
                company=job.company,
                user_email=identity.email,
                user_name=identity.display_name,
            )
            self._applications.append(application)

        log(log_board_event("jobs", "applied", job_id, applicant=identity.email))
        logger.info(f"{identity.email} applied for {job.title} at {job.company}")
        if self._notifier is not None:
            self._notifier.notify(
                identity.address,
                ADMIN_ADDRESS,
                f"Job application: {job.title} - please review my application",
            )
        return application

    def active_jobs(self) -> List[JobRecord]:
        return self.list(BoardStatus.ACTIVE)

    def applications_for(self, job_id: str) -> List[JobApplication]:
        self.get(job_id)
        return [a for a in self._applications if a.job_id == job_id]

    def applications_by(self, email: str) -> List[JobApplication]:
        return [a for a in self._applications if a.user_email == email]
