from __future__ import annotations

import json

import matplotlib

matplotlib.use("Agg")

from gaiaSim import cli
from gaiaSim.planet.new import new_planet
from gaiaSim.planet.params import load_params
from gaiaSim.saveload import load_planet


def _config(tmp_path) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"start": {"size": [16, 8], "cycles_before_start": 2}}), encoding="utf-8")
    return str(path)


def test_spawn_animals_uses_habitable_tiles() -> None:
    params = load_params({"start": {"size": [16, 8], "cycles_before_start": 2}})
    planet, sim = new_planet(params, seed=0)
    placed = cli.spawn_animals(planet, sim, params, "fish", 3)
    assert 0 < len(placed) <= 3
    for p in placed:
        assert cli.habitat_match(planet.map, params.animal("fish"), p)


def test_run_saves_the_planet(tmp_path, capsys) -> None:
    save = tmp_path / "run.gaia"
    history = tmp_path / "history.json"
    cli.main_run(
        [
            "--config",
            _config(tmp_path),
            "--cycles",
            "3",
            "--name",
            "demo",
            "--spawn",
            "ant",
            "--no-progress",
            "--save",
            str(save),
            "--history_json",
            str(history),
        ]
    )
    out = capsys.readouterr().out
    assert "planet:            demo" in out
    assert "cycle:             3" in out

    header, planet = load_planet(save)
    assert header.name == "demo"
    assert header.metadata == {"cycles": 3, "seed": 0}
    assert planet.cycles == 3
    assert "history" in json.loads(history.read_text(encoding="utf-8"))

    out_dir = tmp_path / "figs"
    cli.main_plot([str(save), "--layer", "height", "--out_dir", str(out_dir)])
    assert (out_dir / "history.png").exists()
    assert (out_dir / "height.png").exists()


def test_gif_command(tmp_path) -> None:
    out = tmp_path / "biome.gif"
    cli.main_gif(["--config", _config(tmp_path), "--cycles", "4", "--every", "2", "--no-progress", "--out", str(out)])
    assert out.exists()
