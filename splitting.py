# splitting.py

import logging

import numpy as np

from particle import Particle, mass_from_radius, map_range, radius_from_mass

logger = logging.getLogger("star_sim")


def fragment_mass_bounds(config: dict):
    """
    Returns (min_mass, max_mass) for carved fragments.
    min_mass is the mass of a freshly initialized star; max_mass is the mass of
    a star fragment_max_radius_factor times as wide.
    """
    initial_radius = config['initial_radius']
    factor = config.get('fragment_max_radius_factor', 5)
    return mass_from_radius(initial_radius), mass_from_radius(initial_radius * factor)


def fragment_speed(radius: float, config: dict) -> float:
    """
    Larger fragments are ejected more slowly. The speed falls linearly from
    fragment_speed_max at initial_radius to fragment_speed_min at the largest
    carved radius, and is extrapolated outside that interval.
    """
    initial_radius = config['initial_radius']
    factor = config.get('fragment_max_radius_factor', 5)
    return map_range(
        radius,
        initial_radius, initial_radius * factor,
        config.get('fragment_speed_max', 4.0), config.get('fragment_speed_min', 1.0)
    )


def _make_fragment(mass: float, position, velocity, config: dict, rng: np.random.Generator) -> Particle:
    """Creates one fragment with a random outward kick on top of the parent velocity."""
    angle = rng.uniform(0.0, 2.0 * np.pi)
    speed = fragment_speed(radius_from_mass(mass), config)
    kick = np.array([np.cos(angle), np.sin(angle)]) * speed
    return Particle(
        mass=mass,
        position=position,
        velocity=np.asarray(velocity, dtype=float) + kick,
        split_cooldown=config['split_cooldown']
    )


def split_particle(position, velocity, mass: float, config: dict, rng: np.random.Generator):
    """
    Decomposes an oversized star into fragments whose masses sum to the parent's.

    Fragments of mass U[min_mass, min(max_mass, remaining / 2)) are carved off
    while more than twice min_mass remains; the final fragment takes whatever is
    left. Every fragment starts at the parent's position with the split cooldown
    set, so the burst separates over the following frames.

    Data Contract:
    - Inputs:
        - position, velocity: The parent's 2D state.
        - mass (float): The parent's mass. Must be positive.
        - config (dict): The 'simulation' section of the config file.
        - rng (np.random.Generator): The master seeded random number generator.
    - Outputs: A non-empty list of Particle fragments.
    - Invariants: sum(fragment.mass) == mass, every fragment.mass > 0.
    """
    if mass <= 0:
        raise ValueError(f"Cannot split a particle with non-positive mass {mass}.")

    min_mass, max_mass = fragment_mass_bounds(config)
    remaining_mass = float(mass)
    fragments = []

    # Carve fragments, always leaving enough for at least one more.
    while remaining_mass > min_mass * 2:
        fragment_mass = rng.uniform(min_mass, min(max_mass, remaining_mass * 0.5))
        remaining_mass -= fragment_mass
        fragments.append(_make_fragment(fragment_mass, position, velocity, config, rng))

    # The final fragment absorbs the remainder.
    fragments.append(_make_fragment(remaining_mass, position, velocity, config, rng))

    logger.debug(
        f"Split star of mass {mass:.1f} (radius {radius_from_mass(mass):.1f}) "
        f"into {len(fragments)} fragments."
    )
    return fragments
