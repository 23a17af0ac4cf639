######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Promo code usage statistics

Pure aggregation over an already-fetched collection of code records:
- overall totals (total / used / unused / usage percent)
- the same summary grouped by any field (region, type, ...)

Groups are returned in order of first appearance of their key in the input.
Keys are compared by exact equality; values outside the known enumerations
form their own group under their literal value.
"""

from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Callable, Dict, Hashable, Iterable, List, Tuple, Union


class CodeType(str, Enum):
    """Tier a promo code belongs to"""

    STARTER = "starter"
    STANDARD = "standard"

    @classmethod
    def coerce(cls, value: str) -> Union["CodeType", str]:
        """Returns the matching member, or the literal value if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return value

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)


class Region(str, Enum):
    """Geographic region a promo code is issued for"""

    EMEA = "emea"
    AMERICAS = "americas"
    ASIA_PACIFIC = "asia-pacific"

    @classmethod
    def coerce(cls, value: str) -> Union["Region", str]:
        """Returns the matching member, or the literal value if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return value

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)


@dataclass(frozen=True)
class CodeRecord:
    """The slice of a promo code the statistics are computed from"""

    type: str
    region: str
    used: bool


def _percent(used: int, total: int) -> float:
    return (used / total) * 100 if total > 0 else 0.0


def _plain(key: Hashable) -> Hashable:
    # enum members collapse to their literal value
    return key.value if isinstance(key, Enum) else key


@dataclass(frozen=True)
class OverallSummary:
    """Usage summary over a whole collection of codes"""

    total: int
    used: int
    unused: int
    usage_percent: float

    @classmethod
    def from_counts(cls, total: int, used: int) -> "OverallSummary":
        return cls(total=total, used=used, unused=total - used, usage_percent=_percent(used, total))

    def serialize(self) -> dict:
        return {
            "total": self.total,
            "used": self.used,
            "unused": self.unused,
            "usage_percent": self.usage_percent,
        }


@dataclass(frozen=True)
class GroupSummary:
    """Usage summary for the codes sharing one value of a grouping field"""

    key: Hashable
    total: int
    used: int
    unused: int
    usage_percent: float

    @classmethod
    def from_counts(cls, key: Hashable, total: int, used: int) -> "GroupSummary":
        return cls(
            key=key,
            total=total,
            used=used,
            unused=total - used,
            usage_percent=_percent(used, total),
        )

    def serialize(self) -> dict:
        return {
            "key": _plain(self.key),
            "total": self.total,
            "used": self.used,
            "unused": self.unused,
            "usage_percent": self.usage_percent,
        }


@dataclass(frozen=True)
class StatsReport:
    """Overall, per-region and per-type summaries taken from one snapshot"""

    overall: OverallSummary
    by_region: List[GroupSummary]
    by_type: List[GroupSummary]

    def serialize(self) -> dict:
        return {
            "overall": self.overall.serialize(),
            "by_region": [group.serialize() for group in self.by_region],
            "by_type": [group.serialize() for group in self.by_type],
        }


FieldSelector = Union[str, Callable[[CodeRecord], Hashable]]


class StatsAggregator:
    """
    Computes usage summaries from code records

    Stateless: every call works only on the records it is given, never
    mutates them, and may be made concurrently from several threads.
    """

    def compute_overall(self, records: Iterable[CodeRecord]) -> OverallSummary:
        """Summarizes the whole collection"""
        total = 0
        used = 0
        for record in records:
            total += 1
            if record.used:
                used += 1
        return OverallSummary.from_counts(total, used)

    def compute_by_field(
        self, records: Iterable[CodeRecord], field_selector: FieldSelector
    ) -> List[GroupSummary]:
        """
        Summarizes the collection grouped by the key the selector extracts

        Args:
            records: the code records to summarize
            field_selector: a callable taking a record and returning its
                grouping key, or the name of the record field to group by

        Returns:
            one GroupSummary per distinct key, in order of first appearance
        """
        if isinstance(field_selector, str):
            field_selector = attrgetter(field_selector)

        # dicts keep insertion order, which gives first-appearance ordering
        counts: Dict[Hashable, List[int]] = {}
        for record in records:
            key = field_selector(record)
            pair = counts.get(key)
            if pair is None:
                pair = counts[key] = [0, 0]
            pair[0] += 1
            if record.used:
                pair[1] += 1

        return [GroupSummary.from_counts(key, total, used) for key, (total, used) in counts.items()]

    def compute_by_region(self, records: Iterable[CodeRecord]) -> List[GroupSummary]:
        return self.compute_by_field(records, lambda record: Region.coerce(record.region))

    def compute_by_type(self, records: Iterable[CodeRecord]) -> List[GroupSummary]:
        return self.compute_by_field(records, lambda record: CodeType.coerce(record.type))

    def summarize(self, records: Iterable[CodeRecord]) -> StatsReport:
        """Computes all three views from a single snapshot of the records"""
        snapshot = tuple(records)
        return StatsReport(
            overall=self.compute_overall(snapshot),
            by_region=self.compute_by_region(snapshot),
            by_type=self.compute_by_type(snapshot),
        )


_default_aggregator = StatsAggregator()


def compute_overall(records: Iterable[CodeRecord]) -> OverallSummary:
    """Summarizes the whole collection with a default aggregator"""
    return _default_aggregator.compute_overall(records)


def compute_by_field(records: Iterable[CodeRecord], field_selector: FieldSelector) -> List[GroupSummary]:
    """Groups and summarizes the collection with a default aggregator"""
    return _default_aggregator.compute_by_field(records, field_selector)
