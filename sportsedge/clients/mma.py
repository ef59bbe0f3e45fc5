"""
API-Sports MMA client (fighters, fights, career records).
"""
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from sportsedge.clients.api_sports import ApiSportsClient, parse_all
from sportsedge.utils.helpers import safe_dict, safe_int, safe_optional_int, safe_str

logger = logging.getLogger("clients.mma")


@dataclass
class RawFighter:
    id: int
    name: str
    nickname: Optional[str] = None
    category: Optional[str] = None
    camp: Optional[str] = None
    image: Optional[str] = None
    nationality: Optional[str] = None
    winner: Optional[bool] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawFighter"]:
        item = safe_dict(item)
        fighter_id = safe_optional_int(item.get("id"))
        name = safe_str(item.get("name")).strip()
        if fighter_id is None or not name:
            return None
        winner = item.get("winner")
        return cls(
            id=fighter_id,
            name=name,
            nickname=item.get("nickname") or None,
            category=item.get("category") or None,
            camp=safe_dict(item.get("team")).get("name") or None,
            image=item.get("image") or item.get("logo") or None,
            nationality=item.get("nationality") or None,
            winner=winner if isinstance(winner, bool) else None,
        )


@dataclass
class RawFight:
    id: int
    status_short: str
    first: RawFighter
    second: RawFighter
    category: Optional[str] = None
    timestamp: Optional[int] = None
    date: Optional[str] = None
    first_result: Optional[int] = None
    second_result: Optional[int] = None

    @property
    def has_result(self) -> bool:
        return self.first_result is not None and self.second_result is not None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawFight"]:
        item = safe_dict(item)
        fighters = safe_dict(item.get("fighters"))
        first = RawFighter.from_payload(fighters.get("first"))
        second = RawFighter.from_payload(fighters.get("second"))
        fight_id = safe_optional_int(item.get("id"))
        if first is None or second is None or fight_id is None:
            return None

        results = safe_dict(item.get("results"))
        first_result = safe_optional_int(results.get("first"))
        second_result = safe_optional_int(results.get("second"))
        if first_result is None and second_result is None and (
            first.winner is not None or second.winner is not None
        ):
            # some payloads only flag the winner on each fighter
            first_result = 1 if first.winner else 0
            second_result = 1 if second.winner else 0

        return cls(
            id=fight_id,
            status_short=safe_str(safe_dict(item.get("status")).get("short")).upper(),
            first=first,
            second=second,
            category=item.get("category") or None,
            timestamp=safe_optional_int(item.get("timestamp")),
            date=item.get("date"),
            first_result=first_result,
            second_result=second_result,
        )


@dataclass
class RawFighterRecord:
    fighter_id: int
    wins: int = 0
    losses: int = 0
    draws: int = 0
    no_contests: int = 0
    ko_wins: int = 0
    ko_losses: int = 0
    sub_wins: int = 0
    sub_losses: int = 0
    dec_wins: int = 0
    dec_losses: int = 0

    @property
    def total_fights(self) -> int:
        return self.wins + self.losses + self.draws + self.no_contests

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawFighterRecord"]:
        item = safe_dict(item)
        fighter_id = safe_optional_int(safe_dict(item.get("fighter")).get("id"))
        if fighter_id is None:
            return None
        record = safe_dict(item.get("record"))
        total = safe_dict(record.get("total"))
        ko = safe_dict(record.get("ko"))
        sub = safe_dict(record.get("sub"))
        dec = safe_dict(record.get("dec"))
        return cls(
            fighter_id=fighter_id,
            wins=safe_int(total.get("win")),
            losses=safe_int(total.get("loss")),
            draws=safe_int(total.get("draw")),
            no_contests=safe_int(total.get("nc")),
            ko_wins=safe_int(ko.get("win")),
            ko_losses=safe_int(ko.get("loss")),
            sub_wins=safe_int(sub.get("win")),
            sub_losses=safe_int(sub.get("loss")),
            dec_wins=safe_int(dec.get("win")),
            dec_losses=safe_int(dec.get("loss")),
        )


class MmaClient(ApiSportsClient):
    """https://v1.mma.api-sports.io"""

    name = "api-mma"

    def search_fighters(self, name: str) -> List[RawFighter]:
        return parse_all(self.get("/fighters", {"search": name}), RawFighter.from_payload)

    def get_fighter(self, fighter_id: int) -> Optional[RawFighter]:
        fighters = parse_all(self.get("/fighters", {"id": fighter_id}), RawFighter.from_payload)
        return fighters[0] if fighters else None

    def get_fights(self, **params: Any) -> List[RawFight]:
        return parse_all(self.get("/fights", params), RawFight.from_payload)

    def get_fighter_record(self, fighter_id: int) -> Optional[RawFighterRecord]:
        records = parse_all(
            self.get("/fighters/records", {"id": fighter_id}), RawFighterRecord.from_payload
        )
        return records[0] if records else None
