"""Player-facing resource pools."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Resources:
    """Energy is a per-cycle flow; material and gene points are stocks.

    Stock deltas accumulated during a cycle are committed by `apply_diff` at
    the start of the next one.
    """

    energy: float = 0.0
    used_energy: float = 0.0
    material: float = 0.0
    diff_material: float = 0.0
    gene_point: float = 0.0
    diff_gene_point: float = 0.0

    def reset_flows(self) -> None:
        self.energy = 0.0
        self.used_energy = 0.0
        self.diff_material = 0.0
        self.diff_gene_point = 0.0

    def surplus_energy(self) -> float:
        return self.energy - self.used_energy

    def apply_diff(self, max_material: float) -> None:
        self.material = min(max(self.material + self.diff_material, 0.0), max_material)
        self.gene_point = max(self.gene_point + self.diff_gene_point, 0.0)


__all__ = ["Resources"]
