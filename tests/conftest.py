# tests/conftest.py

from datetime import date

import pytest
from sqlalchemy import func, select

from app.core.database import build_session_factory, create_engine_for, init_db
from app.models import (
    Enrollment,
    EnrollmentStatus,
    GradeEntry,
    Role,
    Subject,
    SubjectAssignment,
    User,
)
from app.schemas.identity import IdentityContext
from app.services.attendance_ledger import AttendanceLedger
from app.services.grade_ledger import GradeLedger
from app.services.reference_validator import ReferenceValidator
from app.services.transaction import TransactionCoordinator

MATH = 10
PHYSICS = 20

PROFESSOR_ID = 1
OTHER_PROFESSOR_ID = 2
COORDINATOR_ID = 3
ADMIN_ID = 4

# 101-105 activos en Matemática; 106 suspendido; 107 sin matrícula
ENROLLED = [101, 102, 103, 104, 105]
SUSPENDED = 106
NOT_ENROLLED = 107

CLASS_DATE = date(2026, 3, 9)


@pytest.fixture
async def engine(tmp_path):
    # Archivo real (no :memory:) para que las conexiones concurrentes vean la misma base
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'registro.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    factory = build_session_factory(engine)
    async with factory() as session, session.begin():
        session.add_all([
            User(id=PROFESSOR_ID, full_name="Ana Souza", email="ana@imel.edu", role=Role.PROFESSOR),
            User(id=OTHER_PROFESSOR_ID, full_name="Bruno Lima", email="bruno@imel.edu", role=Role.PROFESSOR),
            User(id=COORDINATOR_ID, full_name="Carla Dias", email="carla@imel.edu", role=Role.COORDINATOR),
            User(id=ADMIN_ID, full_name="Davi Rocha", email="davi@imel.edu", role=Role.ADMIN),
        ])
        session.add_all([
            User(id=sid, full_name=f"Aluno {sid}", email=f"aluno{sid}@imel.edu", role=Role.STUDENT)
            for sid in ENROLLED + [SUSPENDED, NOT_ENROLLED]
        ])
        session.add_all([Subject(id=MATH, name="Matemática"), Subject(id=PHYSICS, name="Física")])
        await session.flush()
        session.add_all([
            SubjectAssignment(subject_id=MATH, grader_id=PROFESSOR_ID),
            SubjectAssignment(subject_id=PHYSICS, grader_id=OTHER_PROFESSOR_ID),
        ])
        session.add_all([Enrollment(student_id=sid, subject_id=MATH) for sid in ENROLLED])
        session.add_all([
            Enrollment(student_id=SUSPENDED, subject_id=MATH, status=EnrollmentStatus.SUSPENDED),
            Enrollment(student_id=101, subject_id=PHYSICS),
        ])
    return factory


@pytest.fixture
def coordinator(session_factory):
    return TransactionCoordinator(session_factory)


@pytest.fixture
def validator():
    return ReferenceValidator()


@pytest.fixture
def grade_ledger(coordinator):
    return GradeLedger(coordinator)


@pytest.fixture
def attendance_ledger(coordinator):
    return AttendanceLedger(coordinator)


@pytest.fixture
def professor():
    return IdentityContext(actor_id=PROFESSOR_ID, actor_role=Role.PROFESSOR, assigned_subjects={MATH})


@pytest.fixture
def other_professor():
    return IdentityContext(
        actor_id=OTHER_PROFESSOR_ID, actor_role=Role.PROFESSOR, assigned_subjects={PHYSICS}
    )


@pytest.fixture
def coordinator_identity():
    return IdentityContext(actor_id=COORDINATOR_ID, actor_role=Role.COORDINATOR)


@pytest.fixture
def student_identity():
    return IdentityContext(actor_id=101, actor_role=Role.STUDENT)


@pytest.fixture
def count_rows(session_factory):
    async def _count(model=GradeEntry, **filters):
        q = select(func.count()).select_from(model)
        for column, value in filters.items():
            q = q.where(getattr(model, column) == value)
        async with session_factory() as session:
            return (await session.execute(q)).scalar_one()

    return _count


@pytest.fixture
def attendance_rows():
    return [
        {"student_id": 101, "status": "present"},
        {"student_id": 102, "status": "late"},
        {"student_id": 103, "status": "absent"},
        {"student_id": 104, "status": "excused", "justification": "Atestado médico"},
        {"student_id": 105, "status": "present"},
    ]

