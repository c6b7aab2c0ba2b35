# particle.py

import bisect

import numpy as np
import pygame
from pygame import gfxdraw

import constants


def mass_from_radius(radius: float) -> float:
    """Mass is proportional to the area of the star's disc."""
    return np.pi * radius * radius


def radius_from_mass(mass: float) -> float:
    """Inverse of mass_from_radius. Radius is always derived, never stored independently."""
    return float(np.sqrt(mass / np.pi))


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    """
    Linearly re-maps a value from one range onto another.

    Values outside [in_min, in_max] are extrapolated along the same line;
    the result is never clamped. Either range may be descending.
    """
    return out_min + (value - in_min) * (out_max - out_min) / (in_max - in_min)


def wrap_position(position: np.ndarray, bounds: np.ndarray) -> np.ndarray:
    """
    Wraps a position into [0, width) x [0, height) on both axes independently.

    The space is toroidal: leaving one edge re-enters at the opposite edge.
    Wrapping a position that is already in range leaves it unchanged.
    """
    wrapped = np.mod(position, bounds)
    # np.mod can round a tiny negative value up to the extent itself.
    wrapped[wrapped >= bounds] = 0.0
    return wrapped


def star_color(radius: float, star_types=constants.STAR_TYPES):
    """
    Returns the color of the highest star tier whose minimum radius does not
    exceed the given radius. Radii below every threshold get the lowest tier.

    Data Contract:
    - Inputs:
        - radius (float): The star's radius.
        - star_types (list): (min_radius, color) pairs in ascending order.
    - Outputs: An (R, G, B) tuple.
    """
    thresholds = [min_radius for min_radius, _ in star_types]
    tier = bisect.bisect_right(thresholds, radius) - 1
    return star_types[max(tier, 0)][1]


class Particle:
    """
    Represents a single star as seen from outside the particle store.

    Instances are produced by ParticleSystem.snapshot() for the render sink and
    by the split engine for newly created fragments. The mass is the source of
    truth; the radius is derived from it on construction.
    """
    def __init__(self, mass: float, position, velocity, split_cooldown: int = 0, trail=()):
        if mass <= 0:
            raise ValueError(f"Particle mass must be positive, got {mass}")
        self.mass = float(mass)
        self.radius = radius_from_mass(self.mass)
        self.position = np.array(position, dtype=float)
        self.velocity = np.array(velocity, dtype=float)
        self.split_cooldown = int(split_cooldown)
        self.trail = tuple(tuple(point) for point in trail)

    def __repr__(self):
        return (
            f"Particle(mass={self.mass:.2f}, radius={self.radius:.2f}, "
            f"position={self.position.tolist()}, velocity={self.velocity.tolist()}, "
            f"split_cooldown={self.split_cooldown})"
        )

    @property
    def color(self):
        """The star tier color for the current radius."""
        return star_color(self.radius)

    def trail_styles(self):
        """
        Computes the (alpha, diameter) pair for each trail sample, oldest first.
        The oldest sample is the most transparent and smallest; the newest is the
        most opaque and largest.
        """
        n = len(self.trail)
        styles = []
        for i in range(n):
            alpha = map_range(i, 0, n, 0, 255 * constants.TRAIL_OPACITY)
            diameter = map_range(
                i, 0, n,
                self.radius * constants.TRAIL_MIN_SCALE,
                self.radius * constants.TRAIL_MAX_SCALE
            )
            styles.append((alpha, diameter))
        return styles

    def draw(self, screen: pygame.Surface):
        """
        Draws the fading trail and then the star itself.
        gfxdraw is used for the trail because it blends the alpha channel onto
        the target surface.
        """
        color = self.color
        for (x, y), (alpha, diameter) in zip(self.trail, self.trail_styles()):
            trail_radius = int(diameter / 2)
            if trail_radius < 1 or alpha < 1:
                continue
            gfxdraw.filled_circle(screen, int(x), int(y), trail_radius, (*color, int(alpha)))

        pygame.draw.circle(
            screen,
            color,
            (int(self.position[0]), int(self.position[1])),
            max(1, int(round(self.radius)))
        )
