from .action import ActionError
from .debug import DebugContext, tile_debug_info
from .new import new_planet
from .params import Params, StartParams, load_params, load_params_json
from .serialize import planet_digest, planet_from_bytes, planet_to_bytes
from .sim import Sim, make_sim
from .state import Planet, make_planet
from .stepper import advance, advance_n, update

__all__ = [
    "ActionError",
    "DebugContext",
    "Params",
    "Planet",
    "Sim",
    "StartParams",
    "advance",
    "advance_n",
    "load_params",
    "load_params_json",
    "make_planet",
    "make_sim",
    "new_planet",
    "planet_digest",
    "planet_from_bytes",
    "planet_to_bytes",
    "tile_debug_info",
    "update",
]
