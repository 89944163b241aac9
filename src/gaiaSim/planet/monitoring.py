"""Threshold checks that raise and clear persistent warnings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .defs import GasKind
from .report import WarnHighTemp, WarnLowCarbonDioxide, WarnLowOxygen, WarnLowTemp

if TYPE_CHECKING:
    from .params import Params
    from .state import Planet


def _toggle(planet: Planet, warn, active: bool) -> None:
    if active:
        planet.reports.append_persistent_warn(planet.cycles, warn)
    else:
        planet.reports.delete_persistent_warn(type(warn))


def monitor(planet: Planet, params: Params) -> None:
    mp = params.monitoring
    if planet.cycles % mp.interval_cycles != 0:
        return
    planet.reports.remove_outdated(planet.cycles, mp.report_span)

    temp = planet.stat.average_air_temp
    _toggle(planet, WarnHighTemp(), temp > mp.warn_high_temp)
    _toggle(planet, WarnLowTemp(), temp < mp.warn_low_temp)
    _toggle(planet, WarnLowOxygen(), planet.atmo.partial_pressure(GasKind.OXYGEN) < mp.warn_low_oxygen)
    _toggle(
        planet,
        WarnLowCarbonDioxide(),
        planet.atmo.partial_pressure(GasKind.CARBON_DIOXIDE) < mp.warn_low_carbon_dioxide,
    )


__all__ = ["monitor"]
