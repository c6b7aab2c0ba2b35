import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from particle_system import ParticleSystem


@pytest.fixture
def sim_config():
    """The 'simulation' section of config.json, without the start-up population."""
    return {
        "particle_count": 0,
        "initial_radius": 5,
        "initial_speed": 2.0,
        "split_threshold": 60,
        "split_cooldown": 60,
        "fragment_max_radius_factor": 5,
        "fragment_speed_max": 4.0,
        "fragment_speed_min": 1.0,
        "trail_length": 20,
        "split_fragments_target": 50
    }


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def empty_system(sim_config, rng):
    return ParticleSystem(num_particles=0, config=sim_config, rng=rng, bounds=(600, 600))
