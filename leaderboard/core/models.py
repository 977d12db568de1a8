"""Data models for the weight-loss contest leaderboard."""

from dataclasses import dataclass, field
from enum import Enum


UNRANKED = -1           # rank for competitors without enough weigh-ins
NO_DATA = -1.0          # percent_loss / kg_loss sentinel for the same


class RankingMode(Enum):
    PRE_FINAL = 'preFinal'
    FINAL = 'final'


class WeightTrend(Enum):
    UP = 'up'        # gained weight
    DOWN = 'down'    # lost weight
    SAME = 'same'


@dataclass(frozen=True)
class WeighIn:
    """One dated weight measurement."""
    date: str        # "2025-01-15"
    weight: float    # kg


@dataclass
class CompetitorEntry:
    """A competitor record as held by the record store."""
    name: str                  # unique within a contest
    baseline_weight: float
    current_weight: float
    cheerer: str = ''          # supporter / team label, may carry an emoji
    weigh_ins: list = field(default_factory=list)  # WeighIn, insertion order
    profile_pic: str = ''
    before_photo: str = ''
    after_photo: str = ''
    wa_applied: bool = False


@dataclass(frozen=True)
class RankingResult:
    """Derived, read-only ranking for one competitor.

    Competitors with one or fewer weigh-ins carry sentinel values
    (rank, percent_loss and kg_loss all -1). Check ``is_ranked`` before
    doing arithmetic on the metrics.
    """
    name: str
    percent_loss: float
    kg_loss: float
    rank: int
    is_tied: bool
    weight_trend: WeightTrend
    has_insufficient_data: bool
    wa_applied: bool = False
    weight_change_percent: float = 0.0
    cheerer: str = ''
    profile_pic: str = ''
    before_photo: str = ''
    after_photo: str = ''
    weigh_ins: tuple = ()      # WeighIn, sorted by date

    @property
    def is_ranked(self) -> bool:
        return not self.has_insufficient_data and self.rank != UNRANKED


@dataclass
class ContestConfig:
    """Configuration for a single contest run."""
    contest_name: str                       # "GMF Biggest Loser 2025"
    mode: RankingMode = RankingMode.PRE_FINAL
    title_lines: tuple = ()                 # ("Biggest Loser", "Final Standings")
    year: str = ''                          # e.g. "2025" for PDF titles
