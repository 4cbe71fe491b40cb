"""
AlumniHub demo data — the sample portal a fresh install starts with.

Credentials here are demo-only and are bcrypt-hashed when the identity
store is built; they never live in memory as plaintext afterwards.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, List

from alumnihub.boards.models import EventRecord, JobRecord
from alumnihub.documents.models import MIB, DocumentRecord, DocumentStatus
from alumnihub.engine.identity import ADMIN_ADDRESS, BROADCAST_ADDRESS
from alumnihub.messaging.models import MessageRecord

ADMIN_EMAIL = "admin@jit.example"
ADMIN_PASSWORD = "admin-demo-2025"

ADMIN_CREDENTIALS: Dict[str, object] = {
    "email": ADMIN_EMAIL,
    "password": ADMIN_PASSWORD,
    "display_name": "Administrator",
    "role": "admin",
}

ALUMNI_CREDENTIALS: List[Dict[str, object]] = [
    {"email": "arundhathi@jit.example", "password": "arundhathi-demo", "display_name": "Arundhathi T", "alumni_id": 1},
    {"email": "someshwar@jit.example", "password": "someshwar-demo", "display_name": "Someshwar H T", "alumni_id": 2},
    {"email": "diana@jit.example", "password": "diana-demo", "display_name": "Diana G", "alumni_id": 3},
    {"email": "gowri@jit.example", "password": "gowri-demo", "display_name": "Gowri S", "alumni_id": 4},
    {"email": "aravind@jit.example", "password": "aravind-demo", "display_name": "Aravind Ram", "alumni_id": 5},
]

FUNDRAISING = {
    "total_donations": 125000,
    "average_donation": 5000,
    "active_campaigns": 3,
    "total_donors": 25,
}

WELCOME_MESSAGE = "Welcome to JIT Alumni Connect! Use this space to reach the admin and fellow alumni."


def credentials() -> List[Dict[str, object]]:
    """Admin first, then every alumni, each with its role filled in."""
    return [dict(ADMIN_CREDENTIALS)] + [dict(c, role="alumni") for c in ALUMNI_CREDENTIALS]


def _utc(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def documents() -> List[DocumentRecord]:
    return [
        DocumentRecord(
            id="doc1",
            owner="diana@jit.example",
            title="Degree Certificate",
            file_name="degree_cert.pdf",
            category="Academic Certificates",
            status=DocumentStatus.APPROVED,
            uploaded_at=_utc(date(2024, 9, 15)),
            size_bytes=int(2.3 * MIB),
            comment="Document approved successfully",
        ),
        DocumentRecord(
            id="doc2",
            owner="arundhathi@jit.example",
            title="Resume",
            file_name="arundhathi_resume.pdf",
            category="Resumes & CVs",
            uploaded_at=_utc(date(2024, 9, 20)),
            size_bytes=int(1.8 * MIB),
        ),
        DocumentRecord(
            id="doc3",
            owner="someshwar@jit.example",
            title="Nativity Certificate",
            file_name="nativity_cert.pdf",
            category="Identity Documents",
            uploaded_at=_utc(date(2024, 9, 21)),
            size_bytes=int(1.2 * MIB),
        ),
    ]


def events() -> List[EventRecord]:
    return [
        EventRecord(
            id="event1",
            title="Annual Alumni Meet 2025",
            date=date(2025, 12, 25),
            time="10:00 AM",
            venue="JIT Main Auditorium",
            capacity=300,
            registered=156,
            description="Networking, cultural programs, career sessions and reconnecting with classmates from all batches.",
            created_by=ADMIN_EMAIL,
            created_at=date(2024, 9, 15),
        ),
        EventRecord(
            id="event2",
            title="YUVA-Techfest' 25",
            date=date(2025, 9, 27),
            time="09:00 AM",
            venue="Thanam Hall",
            capacity=500,
            registered=234,
            description="Technical festival with coding competitions, hackathons and industry expert sessions.",
            created_by=ADMIN_EMAIL,
            created_at=date(2024, 9, 10),
        ),
        EventRecord(
            id="event3",
            title="Career Guidance Workshop",
            date=date(2025, 10, 15),
            time="02:00 PM",
            venue="Conference Hall",
            capacity=150,
            registered=89,
            description="Resume building, interview skills and career advancement.",
            created_by=ADMIN_EMAIL,
            created_at=date(2024, 9, 12),
        ),
    ]


def jobs() -> List[JobRecord]:
    return [
        JobRecord(
            id="job1",
            title="Junior Software Developer",
            company="Tech Solutions Ltd",
            location="Chennai",
            salary="₹3-6 LPA",
            deadline=date(2025, 10, 30),
            description="Join a dynamic team as a Junior Software Developer working with modern technologies.",
            requirements="B.Tech/M.Tech in Computer Science, Java/Python knowledge, 0-2 years experience",
            created_by=ADMIN_EMAIL,
            created_at=date(2024, 9, 20),
        ),
        JobRecord(
            id="job2",
            title="Web Developer Intern",
            company="Digital Innovations",
            location="Coimbatore",
            salary="₹15k-25k/month",
            deadline=date(2025, 10, 15),
            description="Opportunity for fresh graduates in web development with a mentorship program.",
            requirements="HTML, CSS, JavaScript, React knowledge preferred",
            created_by=ADMIN_EMAIL,
            created_at=date(2024, 9, 18),
        ),
    ]


def messages() -> List[MessageRecord]:
    return [
        MessageRecord(id=1, sender=ADMIN_ADDRESS, recipient=BROADCAST_ADDRESS, text=WELCOME_MESSAGE),
    ]
