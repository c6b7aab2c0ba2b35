# particle_system.py

import logging
from collections import deque

import numpy as np
import pygame

from collisions import resolve_collisions
from particle import Particle, mass_from_radius, wrap_position
from splitting import split_particle

logger = logging.getLogger("star_sim")

# Keys of the 'simulation' config section that have no default.
REQUIRED_CONFIG_KEYS = ('initial_radius', 'split_threshold', 'split_cooldown', 'trail_length')


class ParticleSystem:
    """
    Owns every star in the simulation and advances them one frame at a time.

    Particle state is kept as a Structure of Arrays. Slots are only ever marked
    dead during a frame; dead slots are dropped and new fragments appended in a
    single commit step at the end of the frame, so slot indices stay stable for
    the whole pairwise pass.

    Data Contract:
    - Inputs:
        - num_particles (int): The number of stars to create at start-up.
        - config (dict): The 'simulation' section of the config file.
        - rng (np.random.Generator): The master seeded random number generator.
        - bounds (tuple): The (width, height) of the simulation area.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Manages the lifecycle of all particle data.
    - Invariants: All internal arrays and the trail list have the same length.
      For every live star, masses == pi * radii**2. Total mass only changes
      through add_particle.
    """
    def __init__(self, num_particles: int, config: dict, rng: np.random.Generator, bounds: tuple):
        for key in REQUIRED_CONFIG_KEYS:
            if key not in config:
                raise KeyError(f"Simulation config is missing required key '{key}'.")

        self.config = config
        self.rng = rng
        self.bounds = np.array(bounds, dtype=float)
        self.split_threshold = config['split_threshold']
        self.trail_length = config['trail_length']
        # Advisory only: the carving loop in split_particle decides the actual count.
        self.split_fragments_target = config.get('split_fragments_target')

        # --- Per-frame counters for logging ---
        self.merges_this_tick = 0
        self.splits_this_tick = 0
        self.fragments_this_tick = 0
        self.merge_events = []

        # --- Initialize properties using NumPy arrays (Structure of Arrays) ---
        initial_radius = config['initial_radius']
        initial_speed = config.get('initial_speed', 2.0)
        self.positions = rng.random((num_particles, 2)) * self.bounds
        self.velocities = rng.uniform(-initial_speed, initial_speed, (num_particles, 2))
        self.masses = np.full(num_particles, mass_from_radius(initial_radius), dtype=float)
        self.radii = np.full(num_particles, float(initial_radius), dtype=float)
        self.split_cooldowns = np.zeros(num_particles, dtype=np.int64)
        self.alive = np.ones(num_particles, dtype=bool)
        self.trails = [deque(maxlen=self.trail_length) for _ in range(num_particles)]

        logger.info(f"ParticleSystem created for {num_particles} particles.")
        logger.info(
            f"Canvas {self.bounds[0]:.0f}x{self.bounds[1]:.0f}, initial radius {initial_radius}, "
            f"split threshold {self.split_threshold}, split cooldown {config['split_cooldown']} frames, "
            f"fragment target {self.split_fragments_target}."
        )

    @property
    def num_particles(self) -> int:
        return len(self.masses)

    def add_particle(self, position, velocity, mass: float = None, radius: float = None, split_cooldown: int = 0):
        """
        Inserts a single star. Exactly one of mass or radius must be given; the
        other is derived from it. Must not be called while update() is running.
        """
        if (mass is None) == (radius is None):
            raise ValueError("Exactly one of mass or radius must be given.")
        if radius is not None:
            if radius <= 0:
                raise ValueError(f"Particle radius must be positive, got {radius}")
            mass = mass_from_radius(radius)
        particle = Particle(mass, position, velocity, split_cooldown=split_cooldown)
        particle.position = wrap_position(particle.position, self.bounds)
        self._append_particles([particle])

    def _append_particles(self, particles: list):
        """Appends new slots for the given Particle records."""
        if not particles:
            return
        self.positions = np.concatenate([self.positions, np.array([p.position for p in particles])])
        self.velocities = np.concatenate([self.velocities, np.array([p.velocity for p in particles])])
        self.masses = np.concatenate([self.masses, np.array([p.mass for p in particles])])
        self.radii = np.concatenate([self.radii, np.array([p.radius for p in particles])])
        self.split_cooldowns = np.concatenate(
            [self.split_cooldowns, np.array([p.split_cooldown for p in particles], dtype=np.int64)]
        )
        self.alive = np.concatenate([self.alive, np.ones(len(particles), dtype=bool)])
        self.trails.extend(deque(p.trail, maxlen=self.trail_length) for p in particles)

    def _advance_particle(self, i: int):
        """
        Moves a single star by one frame.
        The pre-move position goes into the trail (the deque evicts the oldest
        sample once full), then the position is integrated and wrapped onto the
        torus, and the split cooldown ticks down towards zero.
        """
        self.trails[i].append((float(self.positions[i, 0]), float(self.positions[i, 1])))
        self.positions[i] = wrap_position(self.positions[i] + self.velocities[i], self.bounds)
        if self.split_cooldowns[i] > 0:
            self.split_cooldowns[i] -= 1

    def _split(self, k: int) -> list:
        """Replaces slot k by its fragments. The fragments are returned, not yet inserted."""
        fragments = split_particle(self.positions[k], self.velocities[k], self.masses[k], self.config, self.rng)
        self.alive[k] = False
        self.splits_this_tick += 1
        self.fragments_this_tick += len(fragments)
        return fragments

    def _commit(self, fragments: list):
        """
        Applies the removals and insertions collected during the frame:
        dead slots are dropped and the new fragments are appended.
        """
        survival_mask = self.alive
        if not survival_mask.all():
            self.positions = self.positions[survival_mask]
            self.velocities = self.velocities[survival_mask]
            self.masses = self.masses[survival_mask]
            self.radii = self.radii[survival_mask]
            self.split_cooldowns = self.split_cooldowns[survival_mask]
            self.trails = [trail for trail, alive in zip(self.trails, survival_mask) if alive]
            self.alive = np.ones(len(self.masses), dtype=bool)
        self._append_particles(fragments)

    def update(self):
        """
        Runs one frame of the simulation.

        Stars are visited in descending slot order. Each visited star is moved,
        then tested against every live star visited before it in this frame,
        merging on overlap. If it is still alive and now larger than the split
        threshold it is split immediately. A previously visited star that grew
        past the threshold by absorbing the visited one is split immediately too.

        Returns the list of MergeEvents emitted during the frame.
        """
        self.merges_this_tick = 0
        self.splits_this_tick = 0
        self.fragments_this_tick = 0
        events = []
        fragments = []

        for i in range(self.num_particles - 1, -1, -1):
            self._advance_particle(i)

            merges = resolve_collisions(
                i,
                self.positions,
                self.velocities,
                self.masses,
                self.radii,
                self.split_cooldowns,
                self.alive,
                self.rng
            )

            grown = []
            for absorber, event in merges:
                events.append(event)
                if absorber != i and absorber not in grown:
                    grown.append(absorber)
            self.merges_this_tick += len(merges)

            for k in [i] + grown:
                if self.alive[k] and self.radii[k] > self.split_threshold:
                    fragments.extend(self._split(k))

        self._commit(fragments)
        self.merge_events = events
        return events

    def snapshot(self) -> list:
        """
        Returns a copy of every live star as a Particle record, for the render
        and audio sinks. Mutating the records does not affect the simulation.
        """
        return [
            Particle(
                self.masses[i],
                self.positions[i],
                self.velocities[i],
                split_cooldown=self.split_cooldowns[i],
                trail=self.trails[i]
            )
            for i in range(self.num_particles)
            if self.alive[i]
        ]

    def draw(self, screen: pygame.Surface):
        """Draws every star with its trail."""
        for particle in self.snapshot():
            particle.draw(screen)

    def get_total_mass(self) -> float:
        """Total mass of all live stars. Merges and splits conserve it."""
        return float(np.sum(self.masses[self.alive]))

    def get_total_momentum(self) -> np.ndarray:
        """
        Total momentum of all live stars.
        P = sum(m * v). Merges conserve it; splits add the random fragment kicks.
        """
        alive = self.alive
        return np.sum(self.masses[alive, np.newaxis] * self.velocities[alive], axis=0)
