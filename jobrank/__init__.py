"""Job eligibility and relevance ranking."""
from jobrank.config import RankingConfig, load_ranking_config
from jobrank.models import Job, Match, MatchReason, RankingInputs, UserJobProfile
from jobrank.ranker import MatchRanker

__all__ = [
    "Job", "Match", "MatchReason", "MatchRanker", "RankingConfig",
    "RankingInputs", "UserJobProfile", "load_ranking_config",
]
