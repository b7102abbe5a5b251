"""Core 모듈"""

from app.core.config import settings
from app.core.database import Base, get_db
from app.core.exceptions import (
    BadRequestException,
    BaseAPIException,
    ConflictException,
    ErrorCode,
    ForbiddenException,
    GatewayTimeoutException,
    InternalServerException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "Base",
    "get_db",
    "ErrorCode",
    "BaseAPIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "InternalServerException",
    "ServiceUnavailableException",
    "GatewayTimeoutException",
    "get_logger",
    "setup_logging",
]
