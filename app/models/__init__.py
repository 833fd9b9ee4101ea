"""Modelos SQLAlchemy (tablas de la base de datos)."""
from app.models.role import Role
from app.models.user import User
from app.models.subject import Subject
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.subject_assignment import SubjectAssignment
from app.models.grade_entry import AssessmentKind, GradeEntry
from app.models.attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    "Role",
    "User",
    "Subject",
    "Enrollment",
    "EnrollmentStatus",
    "SubjectAssignment",
    "AssessmentKind",
    "GradeEntry",
    "AttendanceRecord",
    "AttendanceStatus",
]
