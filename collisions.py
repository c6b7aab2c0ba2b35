# collisions.py

from collections import namedtuple

import numba
import numpy as np

from particle import radius_from_mass

# A merge as seen by the sinks: the combined mass and where the absorber sits.
# Slot indices are left out: the end-of-frame commit invalidates them.
MergeEvent = namedtuple('MergeEvent', ['mass', 'position'])


# --- JIT-Compiled Pair Scan ---
# The scan runs once for every particle every frame, so it is compiled with Numba.
# It only reads the particle arrays; all mutation happens in merge_pair.

@numba.jit(nopython=True)
def collides(ax, ay, radius_a, cooldown_a, bx, by, radius_b, cooldown_b):
    """
    The collision predicate for a single pair: the discs overlap (center
    distance strictly less than the sum of radii) and neither is cooling down.
    """
    if cooldown_a > 0 or cooldown_b > 0:
        return False
    dx = bx - ax
    dy = by - ay
    return np.sqrt(dx * dx + dy * dy) < radius_a + radius_b


@numba.jit(nopython=True)
def _next_collision_jit(i, start, positions, radii, cooldowns, alive):
    """
    Scans slots start, start-1, ..., i+1 and returns the first live slot that
    overlaps slot i, or -1 if there is none.
    """
    if cooldowns[i] > 0:
        return -1
    for j in range(start, i, -1):
        if not alive[j]:
            continue
        if collides(positions[i, 0], positions[i, 1], radii[i], cooldowns[i],
                    positions[j, 0], positions[j, 1], radii[j], cooldowns[j]):
            return j
    return -1


def choose_absorber(i: int, j: int, masses: np.ndarray, rng: np.random.Generator):
    """
    Returns (absorber, absorbed). The heavier particle absorbs the lighter one;
    exactly equal masses are decided by a fair coin flip.
    """
    if masses[i] > masses[j]:
        return i, j
    if masses[j] > masses[i]:
        return j, i
    return (i, j) if rng.random() < 0.5 else (j, i)


def merge_pair(i: int, j: int, positions, velocities, masses, radii, alive, rng: np.random.Generator):
    """
    Merges two live particles in place.

    The absorber keeps its slot, position and trail. Its velocity becomes the
    mass-weighted mean of both velocities, its mass the sum of both masses, and
    its radius is recomputed from the new mass. The absorbed slot is marked dead.

    Data Contract:
    - Inputs: two distinct slot indices and the particle arrays of the store.
    - Outputs: (absorber, absorbed, MergeEvent), or None if either slot is
      already dead.
    - Side Effects: mutates velocities, masses, radii and alive.
    - Invariants: masses[absorber] after == masses[absorber] + masses[absorbed] before.
    """
    if i == j:
        raise ValueError(f"Cannot merge particle slot {i} with itself.")
    if not (alive[i] and alive[j]):
        return None

    absorber, absorbed = choose_absorber(i, j, masses, rng)

    total_mass = masses[absorber] + masses[absorbed]
    velocities[absorber] = (
        velocities[absorber] * masses[absorber] + velocities[absorbed] * masses[absorbed]
    ) / total_mass
    masses[absorber] = total_mass
    radii[absorber] = radius_from_mass(total_mass)
    alive[absorbed] = False

    event = MergeEvent(mass=float(total_mass), position=(float(positions[absorber, 0]), float(positions[absorber, 1])))
    return absorber, absorbed, event


def resolve_collisions(i: int, positions, velocities, masses, radii, cooldowns, alive, rng: np.random.Generator):
    """
    Runs the pairwise pass for slot i against every live slot above it.

    The scan continues after each merge using the live arrays, so a particle
    that just absorbed mass is tested with its new radius against the remaining
    candidates. The pass stops as soon as slot i itself is absorbed.

    Returns a list of (absorber, MergeEvent) tuples in the order they happened.
    """
    merges = []
    start = len(alive) - 1
    while alive[i]:
        j = _next_collision_jit(i, start, positions, radii, cooldowns, alive)
        if j == -1:
            break
        result = merge_pair(i, j, positions, velocities, masses, radii, alive, rng)
        if result is not None:
            absorber, _, event = result
            merges.append((absorber, event))
        start = j - 1
    return merges
