"""Structured failure records and the JSONL skip log.

Every offer or leg that fails decomposition, resolution, pricing or the
publication filters produces a FailureRecord. Records are appended to a
dated JSONL file so an operator can diagnose a skip without rerunning.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from boostedge.common.logging import get_logger
from boostedge.common.time_utils import format_iso, utc_now
from boostedge.resolution.results import ResolutionFailure

logger = get_logger(__name__)


class SkipStage(str, Enum):
    """Pipeline stage at which an offer or leg was skipped."""

    DECOMPOSE = "decompose"
    RESOLVE = "resolve"
    PRICE = "price"
    FILTER = "filter"
    OFFER = "offer"


OFFER_EXCEPTION = "OFFER_EXCEPTION"
LEG_UNPRICED = "LEG_UNPRICED"


@dataclass
class FailureRecord:
    """One skipped offer or leg with its machine-readable reason."""

    stage: SkipStage
    title: str
    bet_type_id: str
    reason_code: str
    reason_detail: str = ""
    team: str | None = None
    tried_names: list[str] = field(default_factory=list)
    candidate_hints: list[str] = field(default_factory=list)
    ts: datetime = field(default_factory=utc_now)

    @classmethod
    def from_resolution(
        cls, title: str, bet_type_id: str, failure: ResolutionFailure
    ) -> "FailureRecord":
        """Build a record from a failed leg resolution."""
        detail = failure.detail or ""
        if failure.event_name:
            detail = f"{failure.event_name}: {detail}" if detail else failure.event_name
        return cls(
            stage=SkipStage.RESOLVE,
            title=title,
            bet_type_id=bet_type_id,
            reason_code=failure.reason.value,
            reason_detail=detail,
            team=failure.requested_team_text,
            tried_names=list(failure.tried_names),
            candidate_hints=list(failure.candidate_hints),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ts": format_iso(self.ts),
            "stage": self.stage.value,
            "title": self.title,
            "bet_type_id": self.bet_type_id,
            "reason_code": self.reason_code,
            "reason_detail": self.reason_detail,
            "team": self.team,
            "tried_names": list(self.tried_names),
            "candidate_hints": list(self.candidate_hints),
        }


class SkipLog:
    """Appends failure records to a dated JSONL file.

    ``{date}`` in the path template is replaced with the UTC date the log was
    opened, so one run writes to one file.
    """

    def __init__(
        self,
        path_template: str | Path,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize skip log.

        Args:
            path_template: Output path, optionally containing ``{date}``.
            clock: Time source (used by tests).
        """
        self.path = Path(str(path_template).replace("{date}", clock().strftime("%Y-%m-%d")))
        self.records: list[FailureRecord] = []

    def write(self, record: FailureRecord) -> None:
        """Append a record to the log file and emit it as a log event."""
        self.records.append(record)
        logger.info(
            "offer_skipped",
            stage=record.stage.value,
            title=record.title,
            bet_type_id=record.bet_type_id,
            reason_code=record.reason_code,
            reason_detail=record.reason_detail,
            team=record.team,
        )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")

    def write_all(self, records: list[FailureRecord]) -> None:
        for record in records:
            self.write(record)

    def counts(self) -> dict[str, int]:
        """Number of records written per reason code."""
        counts: dict[str, int] = {}
        for record in self.records:
            counts[record.reason_code] = counts.get(record.reason_code, 0) + 1
        return counts
