"""Energy regeneration rules.

Energy regenerates one unit per fixed interval up to the user's cap. The
caller passes ``now`` in; nothing here reads the clock.
"""

from datetime import datetime
from typing import NamedTuple

REGENERATION_RATE = 1  # energy per interval
DEFAULT_REGEN_INTERVAL_SECONDS = 120
DEFAULT_MAX_ENERGY = 100


class EnergyState(NamedTuple):
    energy: int
    seconds_until_next: int
    last_regeneration: datetime


def compute_energy(
    stored_energy: int,
    last_regeneration: datetime,
    now: datetime,
    max_energy: int = DEFAULT_MAX_ENERGY,
    interval_seconds: int = DEFAULT_REGEN_INTERVAL_SECONDS,
) -> EnergyState:
    """Return current energy, seconds until the next tick and the new regen timestamp.

    The timestamp only moves to ``now`` when at least one whole interval has
    elapsed, so partial progress toward the next tick is kept otherwise.

    Args:
        stored_energy (int): Energy value as persisted
        last_regeneration (datetime): Last time regeneration granted energy
        now (datetime): Evaluation time, same timezone convention as last_regeneration
        max_energy (int): Energy cap
        interval_seconds (int): Seconds needed for one unit of energy

    Returns:
        EnergyState: Regenerated energy, countdown and timestamp to persist
    """
    elapsed = max(0.0, (now - last_regeneration).total_seconds())
    intervals = int(elapsed // interval_seconds)
    gained = intervals * REGENERATION_RATE

    energy = min(max_energy, stored_energy + gained)
    updated_last_regeneration = now if gained > 0 else last_regeneration

    since_update = max(0, int((now - updated_last_regeneration).total_seconds()))
    seconds_until_next = interval_seconds - (since_update % interval_seconds)
    seconds_until_next = max(0, min(interval_seconds, seconds_until_next))

    return EnergyState(energy, seconds_until_next, updated_last_regeneration)
