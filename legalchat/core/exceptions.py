# legalchat/core/exceptions.py
from typing import Any, Optional, Dict
from fastapi import HTTPException, status


UPSTREAM_TIMEOUT_MESSAGE = (
    "The AI service is taking longer than expected. This might be because the "
    "service is waking up from sleep. Please try again in a moment."
)


class BaseAPIException(HTTPException):
    """Base exception for API"""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundException(BaseAPIException):
    """Resource not found exception"""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class UnauthorizedException(BaseAPIException):
    """Unauthorized exception"""
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenException(BaseAPIException):
    """Forbidden exception"""
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class UpstreamServiceException(BaseAPIException):
    """AI backend answered with an error or could not be reached"""
    def __init__(self, detail: str = "AI service request failed"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail
        )


class UpstreamTimeoutException(UpstreamServiceException):
    """AI backend did not answer in time (usually a cold start)"""
    def __init__(self, detail: str = UPSTREAM_TIMEOUT_MESSAGE):
        BaseAPIException.__init__(
            self,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=detail
        )
