"""
Custom exceptions for the Sports Grades service.
"""


class AuthorizationError(Exception):
    """Raised when a user attempts an unauthorized action."""
    
    def __init__(self, message: str, user_id: int = None, action: str = None):
        self.message = message
        self.user_id = user_id
        self.action = action
        super().__init__(self.message)


class SportAccessDenied(AuthorizationError):
    """Raised when a user has no grant covering the requested student."""
    
    def __init__(self, requester_id: int, student_id: int):
        message = f"Access denied: User {requester_id} cannot view grades of student {student_id}"
        super().__init__(message, user_id=requester_id, action="view_student_grades")
        self.student_id = student_id


class AdminOnlyError(AuthorizationError):
    """Raised when a non-administrator tries to manage access."""
    
    def __init__(self, user_id: int, action: str):
        message = f"Access denied: Only administrators can perform '{action}'"
        super().__init__(message, user_id=user_id, action=action)


class InvalidUserError(Exception):
    """Raised when a user is not found."""
    
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User with id {user_id} not found")


class ValidationError(Exception):
    """Raised when input validation fails."""
    
    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(self.message)
