"""Pure rules layer for the Focustown town.

This package holds everything needed to evolve a town without I/O:

* Frozen dataclasses describing the aggregate (see :mod:`models`).
* The command union and its wire codec (see :mod:`commands`).
* Rule constants (see :mod:`rules_config`) and the pure helpers built on
  them: economy, footprints, occupancy and progression.
* The reducer (:func:`reducer.apply_command`), the only way state changes.

The local store and the sync service in :mod:`focustown.services` build the
optimistic queue and reconciliation protocol on top of these functions.
"""

from . import (
    command_factory,
    commands,
    economy,
    enums,
    footprint,
    models,
    occupancy,
    progression,
    queue,
    reducer,
    rules_config,
    seed,
)

__all__ = [
    "command_factory",
    "commands",
    "economy",
    "enums",
    "footprint",
    "models",
    "occupancy",
    "progression",
    "queue",
    "reducer",
    "rules_config",
    "seed",
]
