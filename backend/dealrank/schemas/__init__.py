"""Pydantic schemas for the dealrank API.

All request/response models are defined here for easy import.
"""

from dealrank.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from dealrank.schemas.deal import (
    DealCreateRequest,
    DealListResponse,
    DealResponse,
    DealStatsResponse,
    DealUpdateRequest,
    UpvoteResponse,
)
from dealrank.schemas.health import HealthCheckResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Deal
    "DealResponse",
    "DealListResponse",
    "DealStatsResponse",
    "DealCreateRequest",
    "DealUpdateRequest",
    "UpvoteResponse",
    # Health
    "HealthCheckResponse",
]
