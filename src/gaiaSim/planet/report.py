"""Notice reports and persistent warnings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from ..utils import Coords
from .defs import CivilizationAge


@dataclass(frozen=True)
class WarnHighTemp:
    pass


@dataclass(frozen=True)
class WarnLowTemp:
    pass


@dataclass(frozen=True)
class WarnLowOxygen:
    pass


@dataclass(frozen=True)
class WarnLowCarbonDioxide:
    pass


@dataclass(frozen=True)
class CivilizationFounded:
    id: str
    pos: Coords


@dataclass(frozen=True)
class CivilizationAdvanced:
    id: str
    age: CivilizationAge


@dataclass(frozen=True)
class CivilizationExtinct:
    id: str


@dataclass(frozen=True)
class DecadenceStarted:
    id: str
    pos: Coords


@dataclass(frozen=True)
class CivilWarStarted:
    id: str
    pos: Coords


@dataclass(frozen=True)
class InterSpeciesWarStarted:
    ids: Tuple[str, str]
    nuclear: bool


@dataclass(frozen=True)
class InterSpeciesWarCeased:
    ids: Tuple[str, str]


@dataclass(frozen=True)
class PlagueOutbreak:
    id: str
    pos: Coords


@dataclass(frozen=True)
class ExodusStarted:
    id: str


@dataclass(frozen=True)
class VolcanicEruptionStarted:
    pos: Coords


ReportContent = Union[
    WarnHighTemp,
    WarnLowTemp,
    WarnLowOxygen,
    WarnLowCarbonDioxide,
    CivilizationFounded,
    CivilizationAdvanced,
    CivilizationExtinct,
    DecadenceStarted,
    CivilWarStarted,
    InterSpeciesWarStarted,
    InterSpeciesWarCeased,
    PlagueOutbreak,
    ExodusStarted,
    VolcanicEruptionStarted,
]

PERSISTENT_WARNS = (WarnHighTemp, WarnLowTemp, WarnLowOxygen, WarnLowCarbonDioxide)


@dataclass(frozen=True)
class Report:
    cycles: int
    content: ReportContent


@dataclass
class Reports:
    """One-shot notices (newest first) and deduplicated persistent warnings."""

    notices: List[Report] = field(default_factory=list)
    persistent_warns: List[Report] = field(default_factory=list)

    def append(self, cycles: int, content: ReportContent) -> None:
        self.notices.insert(0, Report(cycles=cycles, content=content))

    def append_persistent_warn(self, cycles: int, content: ReportContent) -> None:
        if any(type(r.content) is type(content) for r in self.persistent_warns):
            return
        self.persistent_warns.insert(0, Report(cycles=cycles, content=content))

    def delete_persistent_warn(self, kind: type) -> None:
        self.persistent_warns = [r for r in self.persistent_warns if type(r.content) is not kind]

    def remove_outdated(self, cycles: int, span: int) -> None:
        self.notices = [r for r in self.notices if r.cycles + span > cycles]

    def __len__(self) -> int:
        return len(self.notices) + len(self.persistent_warns)

    def __iter__(self) -> Iterator[Report]:
        """Merge notices and warnings, most recent first."""
        i = 0
        j = 0
        notices = self.notices
        warns = self.persistent_warns
        while i < len(notices) or j < len(warns):
            if j >= len(warns) or (i < len(notices) and notices[i].cycles > warns[j].cycles):
                yield notices[i]
                i += 1
            else:
                yield warns[j]
                j += 1


__all__ = [
    "CivilWarStarted",
    "CivilizationAdvanced",
    "CivilizationExtinct",
    "CivilizationFounded",
    "DecadenceStarted",
    "ExodusStarted",
    "InterSpeciesWarCeased",
    "InterSpeciesWarStarted",
    "PERSISTENT_WARNS",
    "PlagueOutbreak",
    "Report",
    "ReportContent",
    "Reports",
    "VolcanicEruptionStarted",
    "WarnHighTemp",
    "WarnLowCarbonDioxide",
    "WarnLowOxygen",
    "WarnLowTemp",
]
