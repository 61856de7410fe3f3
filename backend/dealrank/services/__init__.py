"""Services module for business logic and data operations.

Services combine the pure ranking engine in dealrank.ranking with the
datastore in dealrank.repositories.
"""

from dealrank.services.deal_service import DealListResult, DealService, DealStats
from dealrank.services.vote_service import UpvoteResult, UpvoteStatus, VoteService

__all__ = [
    "DealListResult",
    "DealService",
    "DealStats",
    "UpvoteResult",
    "UpvoteStatus",
    "VoteService",
]
