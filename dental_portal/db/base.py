from dental_portal.db.base_class import Base

# Import every model so Base.metadata knows all tables
from dental_portal.models.user import User
from dental_portal.models.specialty import Specialty
from dental_portal.models.course import Course
from dental_portal.models.classroom import Classroom
from dental_portal.models.certificate import Certificate

__all__ = ["Base", "User", "Specialty", "Course", "Classroom", "Certificate"]
