"""
Access Policy
Role checks for classroom owners, teachers and students
"""
from quizgrader.errors import AuthorizationError, NotFoundError
from quizgrader.models import TEACHER, STUDENT


class AccessPolicy:
    """Answers "what is this caller to classroom X" from the repository"""

    def __init__(self, repository):
        self.repository = repository

    def _classroom(self, classroom_id):
        classroom = self.repository.get_classroom(classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found")
        return classroom

    def is_owner(self, user_id, classroom_id):
        return self._classroom(classroom_id).owner_id == user_id

    def is_teacher(self, user_id, classroom_id):
        """Owner or enrolled teacher"""
        if self.is_owner(user_id, classroom_id):
            return True
        return self.repository.get_enrollment_role(classroom_id, user_id) == TEACHER

    def is_student(self, user_id, classroom_id):
        return self.repository.get_enrollment_role(classroom_id, user_id) == STUDENT

    def is_member(self, user_id, classroom_id):
        return self.is_teacher(user_id, classroom_id) or self.is_student(user_id, classroom_id)

    def require_teacher(self, user_id, classroom_id, message="Only teachers can perform this action"):
        if not self.is_teacher(user_id, classroom_id):
            raise AuthorizationError(message)

    def require_member(self, user_id, classroom_id, message="You are not enrolled in this classroom"):
        if not self.is_member(user_id, classroom_id):
            raise AuthorizationError(message)
