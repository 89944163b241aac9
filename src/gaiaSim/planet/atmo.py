"""Atmosphere composition and its per-cycle relaxation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Mapping

from .defs import CO2_CARBON_RATIO, OXYGEN_CARBON_RATIO, GasKind

if TYPE_CHECKING:
    from .params import Params
    from .state import Planet


@dataclass
class Atmosphere:
    """Gas masses in Mt plus a dimensionless aerosol level.

    Masses only change through `add`, `remove_atmo`, `release_carbon` and
    `remove_carbon`.
    """

    mass_per_atm: float
    mass: Dict[GasKind, float] = field(default_factory=dict)
    aerosol: float = 0.0

    @classmethod
    def from_atm(cls, atm: Mapping[GasKind, float], mass_per_atm: float) -> "Atmosphere":
        mass = {kind: float(atm.get(kind, 0.0)) * mass_per_atm for kind in GasKind}
        return cls(mass_per_atm=mass_per_atm, mass=mass)

    def total_mass(self) -> float:
        return float(sum(self.mass.values()))

    def atm(self) -> float:
        return self.total_mass() / self.mass_per_atm

    def partial_pressure(self, kind: GasKind) -> float:
        total = self.total_mass()
        if total <= 0.0:
            return 0.0
        return self.atm() * self.mass.get(kind, 0.0) / total

    def get(self, kind: GasKind) -> float:
        return self.mass.get(kind, 0.0)

    def add(self, kind: GasKind, value: float) -> None:
        """Add (or with negative ``value`` remove) gas, clamping at zero."""
        self.mass[kind] = max(self.mass.get(kind, 0.0) + value, 0.0)

    def remove_atmo(self, value: float) -> None:
        """Remove ``value`` Mt spread proportionally over all gases."""
        total = self.total_mass()
        if total <= 0.0:
            return
        ratio = max(1.0 - value / total, 0.0)
        for kind in list(self.mass):
            self.mass[kind] *= ratio

    def release_carbon(self, carbon: float) -> None:
        """Burn ``carbon`` Mt: oxygen is consumed and CO2 produced."""
        if carbon <= 0.0:
            return
        self.add(GasKind.CARBON_DIOXIDE, carbon * CO2_CARBON_RATIO)
        self.add(GasKind.OXYGEN, -carbon * OXYGEN_CARBON_RATIO)

    def remove_carbon(self, carbon: float) -> float:
        """Fix up to ``carbon`` Mt out of CO2; returns the amount fixed."""
        if carbon <= 0.0:
            return 0.0
        available = self.get(GasKind.CARBON_DIOXIDE) / CO2_CARBON_RATIO
        fixed = min(carbon, available)
        self.add(GasKind.CARBON_DIOXIDE, -fixed * CO2_CARBON_RATIO)
        self.add(GasKind.OXYGEN, fixed * OXYGEN_CARBON_RATIO)
        return fixed


def sim_atmosphere(planet: Planet, params: Params) -> None:
    """Relax aerosol toward zero."""
    planet.atmo.aerosol *= params.sim.aerosol_remaining_rate
    if planet.atmo.aerosol < 1.0e-6:
        planet.atmo.aerosol = 0.0


__all__ = ["Atmosphere", "sim_atmosphere"]
