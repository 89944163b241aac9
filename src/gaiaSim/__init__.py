from .planet import (
    ActionError,
    DebugContext,
    Params,
    Planet,
    Sim,
    StartParams,
    advance,
    advance_n,
    load_params,
    load_params_json,
    new_planet,
)
from .saveload import SaveDecodeError, SaveLoadError, SaveNotFoundError, load_planet, save_planet

__all__ = [
    "ActionError",
    "DebugContext",
    "Params",
    "Planet",
    "SaveDecodeError",
    "SaveLoadError",
    "SaveNotFoundError",
    "Sim",
    "StartParams",
    "advance",
    "advance_n",
    "load_params",
    "load_params_json",
    "load_planet",
    "new_planet",
    "save_planet",
]
