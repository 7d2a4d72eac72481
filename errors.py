"""
Error taxonomy for the auth and publish workflows.

Every failure a route can produce is an AppError carrying the message shown
to the caller and the HTTP status it maps to. The FastAPI handler in main
renders them as {"error": message}.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 403
    message = "Email not found"


class UniquenessConflict(AppError):
    status_code = 500

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} already exists")


class DuplicateEmail(UniquenessConflict):
    def __init__(self):
        super().__init__("personal_info.email", "Email already exists")


class InvalidCredentials(AppError):
    status_code = 403
    message = "Incorrect password or email!"


class FederatedAccountOnly(AppError):
    status_code = 403
    message = "Account was created using google. Try login with google."


class PasswordAccountExists(AppError):
    status_code = 403
    message = "This email was signed up without Google. Please login with a password to access the account"


class InvalidExternalToken(AppError):
    status_code = 500
    message = "Failed to authenticate you with Google. Try with another Google account."


class MissingToken(AppError):
    status_code = 401
    message = "No access token"


class InvalidToken(AppError):
    status_code = 403
    message = "Access token is invalid"


class PersistenceError(AppError):
    status_code = 500


class AuthorUpdateFailed(AppError):
    """The blog was stored but the author's statistics were not updated."""
    status_code = 500
    message = "Failed to update total posts number"

    def __init__(self, blog_id: str):
        self.blog_id = blog_id
        super().__init__()

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "id": self.blog_id}


class UploadFailed(AppError):
    status_code = 500
    message = "Failed to upload image"
