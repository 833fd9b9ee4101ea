"""Roles del portal (valor de ``User.role``)."""


class Role:
    """Valores permitidos para el rol de un usuario."""
    STUDENT = "student"
    PROFESSOR = "professor"
    COORDINATOR = "coordinator"
    ADMIN = "admin"
    DIRECTOR = "director"
    GUARDIAN = "guardian"

    ALL = (STUDENT, PROFESSOR, COORDINATOR, ADMIN, DIRECTOR, GUARDIAN)
    # Pueden registrar notas y asistencia (el profesor solo en sus materias)
    WRITERS = (PROFESSOR, COORDINATOR)
    # Pueden consultar registros de cualquier estudiante
    STAFF = (PROFESSOR, COORDINATOR, ADMIN, DIRECTOR)
