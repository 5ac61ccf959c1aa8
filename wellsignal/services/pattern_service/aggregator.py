"""Daily aggregator - one representative mood per UTC calendar day."""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from wellsignal.shared.models import CheckIn, Mood
from wellsignal.shared.utils import as_utc, utc_day


@dataclass(frozen=True)
class DailyMood:
    """The most recent mood recorded on a given day."""
    day: date
    mood: str

    @property
    def parsed(self) -> Optional[Mood]:
        return Mood.parse(self.mood)

    @property
    def normalized(self) -> str:
        return self.mood.strip().lower() if self.mood else ""


def aggregate_daily_moods(check_ins: Iterable[CheckIn]) -> List[DailyMood]:
    """Collapse check-ins to one mood per day.

    Within a day the latest check-in wins. Input order does not matter, so
    feeding the output's source back in always gives the same sequence.

    Returns:
        One DailyMood per distinct day, most recent day first
    """
    latest: Dict[date, Tuple[datetime, str]] = {}
    for check_in in check_ins:
        created = as_utc(check_in.created_at)
        day = utc_day(created)
        current = latest.get(day)
        if current is None or created > current[0]:
            latest[day] = (created, check_in.mood)

    return [
        DailyMood(day=day, mood=mood)
        for day, (_, mood) in sorted(latest.items(), key=lambda item: item[0], reverse=True)
    ]
