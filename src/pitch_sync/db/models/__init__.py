from pitch_sync.db.models.core.country import Country
from pitch_sync.db.models.core.league import League
from pitch_sync.db.models.core.match import Match
from pitch_sync.db.models.core.player import Player
from pitch_sync.db.models.core.standing import Standing
from pitch_sync.db.models.core.team import Team
from pitch_sync.db.models.core.team_league import TeamLeague
from pitch_sync.db.models.core.top_scorer import TopScorer
from pitch_sync.db.models.core.transfer import Transfer

__all__ = [
    "Country",
    "League",
    "Match",
    "Player",
    "Standing",
    "Team",
    "TeamLeague",
    "TopScorer",
    "Transfer",
]
