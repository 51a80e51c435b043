from .schools import School
from .users import User, UserRole
from .tutors import Tutor, TutorSubjectAssignment
from .grades import Grade, Section, SectionSubject
from .audit_logs import AuditLog
