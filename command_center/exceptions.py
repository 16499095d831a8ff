"""
Custom exceptions for the command center HTTP layer
"""
from fastapi import HTTPException, status


class CommandCenterException(HTTPException):
    """Base exception for command center errors"""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class AuthenticationError(CommandCenterException):
    """Authentication error"""
    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail
        )


class HandlerError(Exception):
    """Raised by domain handlers when the backing service rejects a call"""
    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code
