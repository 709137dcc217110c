from dental_portal.models.user import Role, User
from dental_portal.models.specialty import Specialty
from dental_portal.models.course import Course
from dental_portal.models.classroom import Classroom, ClassroomStatus
from dental_portal.models.certificate import Certificate, CertificateStatus

__all__ = [
    "Role",
    "User",
    "Specialty",
    "Course",
    "Classroom",
    "ClassroomStatus",
    "Certificate",
    "CertificateStatus",
]
