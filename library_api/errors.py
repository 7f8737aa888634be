class LibraryError(Exception):
    """Base class for failures surfaced to API clients.

    ``message`` is stable and shown to clients as-is; ``status_code`` is the
    HTTP status the error maps to.
    """

    status_code = 400
    message = "Request failed"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# 400: validation and conflicts
class DuplicateEmail(LibraryError):
    message = "Email already registered"


class DuplicateISBN(LibraryError):
    message = "Book with this ISBN already exists"


class BookUnavailable(LibraryError):
    message = "Book is not available for loan"


class DuplicateActiveLoan(LibraryError):
    message = "You already have an active loan for this book"


class OverdueLoansExist(LibraryError):
    message = "You have overdue loans. Please return them first."


class LoanNotActive(LibraryError):
    message = "Loan is not active"


class ActiveLoansPreventDeletion(LibraryError):
    message = "Cannot delete book with active loans"


class InvalidStock(LibraryError):
    message = "Available stock must be between 0 and total stock"


class InvalidDueDate(LibraryError):
    message = "Due date must be in the future"


class InvalidUpload(LibraryError):
    message = "Invalid file upload"


# 401: authentication
class InvalidCredentials(LibraryError):
    status_code = 401
    message = "Invalid credentials"


class NoRefreshToken(LibraryError):
    status_code = 401
    message = "No refresh token found. Please log in again."


class InvalidRefreshToken(LibraryError):
    status_code = 401
    message = "Invalid refresh token. Session terminated for security."


class TokenFamilyExpired(LibraryError):
    status_code = 401
    message = "Token family expired. Please log in again."


class RefreshTokenExpired(LibraryError):
    status_code = 401
    message = "Refresh token expired. Please log in again."


# 403: authorization
class Forbidden(LibraryError):
    status_code = 403
    message = "Forbidden"


# 404: not found
class UserNotFound(LibraryError):
    status_code = 404
    message = "User not found"


class BookNotFound(LibraryError):
    status_code = 404
    message = "Book not found"


class LoanNotFound(LibraryError):
    status_code = 404
    message = "Loan not found"
