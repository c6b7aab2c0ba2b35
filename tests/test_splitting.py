import numpy as np
import pytest

from particle import mass_from_radius
from splitting import fragment_mass_bounds, fragment_speed, split_particle

PARENT_POSITION = np.array([300.0, 200.0])
PARENT_VELOCITY = np.array([0.5, -1.5])


def test_fragment_mass_bounds(sim_config):
    min_mass, max_mass = fragment_mass_bounds(sim_config)
    assert min_mass == pytest.approx(np.pi * 5 ** 2)
    assert max_mass == pytest.approx(np.pi * 25 ** 2)


@pytest.mark.parametrize("radius, expected", [
    (5.0, 4.0),
    (25.0, 1.0),
    (15.0, 2.5),
    (30.0, 0.25),
])
def test_fragment_speed_falls_with_radius(sim_config, radius, expected):
    assert fragment_speed(radius, sim_config) == pytest.approx(expected)


def test_split_conserves_mass_of_oversized_star(sim_config, rng):
    parent_mass = mass_from_radius(61)

    fragments = split_particle(PARENT_POSITION, PARENT_VELOCITY, parent_mass, sim_config, rng)

    assert len(fragments) > 1
    assert sum(f.mass for f in fragments) == pytest.approx(parent_mass, rel=1e-12)
    for fragment in fragments:
        assert fragment.mass > 0
        assert fragment.radius <= 5 * sim_config['initial_radius']
        assert fragment.split_cooldown == sim_config['split_cooldown']
        assert fragment.mass == pytest.approx(np.pi * fragment.radius ** 2)
        np.testing.assert_array_equal(fragment.position, PARENT_POSITION)
        assert fragment.trail == ()


def test_carved_fragments_respect_mass_bounds(sim_config, rng):
    min_mass, max_mass = fragment_mass_bounds(sim_config)

    fragments = split_particle(PARENT_POSITION, PARENT_VELOCITY, mass_from_radius(80), sim_config, rng)

    *carved, final = fragments
    for fragment in carved:
        assert min_mass <= fragment.mass <= max_mass
    # The loop stops once no more than two minimum masses remain, and each carve
    # takes at most half of what was left.
    assert min_mass < final.mass <= 2 * min_mass


def test_fragment_velocity_is_parent_velocity_plus_radial_kick(sim_config, rng):
    fragments = split_particle(PARENT_POSITION, PARENT_VELOCITY, mass_from_radius(61), sim_config, rng)

    for fragment in fragments:
        kick = fragment.velocity - PARENT_VELOCITY
        assert np.hypot(kick[0], kick[1]) == pytest.approx(fragment_speed(fragment.radius, sim_config))


def test_small_star_splits_into_a_single_fragment(sim_config, rng):
    mass = mass_from_radius(6)  # below two minimum masses

    fragments = split_particle(PARENT_POSITION, PARENT_VELOCITY, mass, sim_config, rng)

    assert len(fragments) == 1
    assert fragments[0].mass == pytest.approx(mass)
    assert fragments[0].split_cooldown == sim_config['split_cooldown']


@pytest.mark.parametrize("mass", [0.0, -1.0])
def test_split_rejects_non_positive_mass(sim_config, rng, mass):
    with pytest.raises(ValueError):
        split_particle(PARENT_POSITION, PARENT_VELOCITY, mass, sim_config, rng)


def test_split_is_reproducible_for_a_seed(sim_config):
    first = split_particle(PARENT_POSITION, PARENT_VELOCITY, mass_from_radius(61), sim_config, np.random.default_rng(7))
    second = split_particle(PARENT_POSITION, PARENT_VELOCITY, mass_from_radius(61), sim_config, np.random.default_rng(7))

    assert [f.mass for f in first] == [f.mass for f in second]
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a.velocity, b.velocity)
