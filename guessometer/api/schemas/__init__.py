"""
Pydantic V2 DTO schemas for the prediction tracker API.

All public DTOs are re-exported here for convenient import:

    from guessometer.api.schemas import PredictionResponse, LeaderboardEntry
"""

from guessometer.api.schemas.common import ProblemDetail
from guessometer.api.schemas.health import HealthResponse, SubsystemStatus
from guessometer.api.schemas.prediction import (
    CategoryCreate,
    CategoryResponse,
    PredictionCreate,
    PredictionResponse,
    PredictionUpdate,
)
from guessometer.api.schemas.social import (
    CommentCreate,
    CommentResponse,
    CommunityContentBody,
    LikeStatus,
)
from guessometer.api.schemas.stats import (
    LeaderboardEntry,
    TrendPointResponse,
    UserStatsResponse,
)
from guessometer.api.schemas.user import DisplayNameUpdate, UserResponse, UserUpsert

__all__ = [
    # Predictions
    "PredictionCreate",
    "PredictionUpdate",
    "PredictionResponse",
    "CategoryCreate",
    "CategoryResponse",
    # Social
    "LikeStatus",
    "CommentCreate",
    "CommentResponse",
    "CommunityContentBody",
    # Users / stats
    "UserResponse",
    "UserUpsert",
    "DisplayNameUpdate",
    "UserStatsResponse",
    "TrendPointResponse",
    "LeaderboardEntry",
    # Health / common
    "HealthResponse",
    "SubsystemStatus",
    "ProblemDetail",
]
