# main.py

import pygame
import constants
import json
import logging
import logger_setup
import numpy as np
from audio import MergeSynth
from particle_system import ParticleSystem

# Get the application's dedicated logger
logger = logging.getLogger("star_sim")


def run_simulation_loop(particle_system, synth, screen, clock):
    """
    The main simulation loop: one physics update, one audio update and one
    redraw per frame, at the fixed framerate.
    """
    # --- Loop Setup ---
    running = True
    tick = 0
    last_logged_mass = particle_system.get_total_mass()
    accumulated_merges = 0
    accumulated_splits = 0
    accumulated_fragments = 0

    while running:
        # Event handling
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False

        # --- Physics & Logic Update ---
        merge_events = particle_system.update()

        # --- Audio ---
        now = pygame.time.get_ticks() / 1000.0
        synth.on_merges(merge_events, now)
        synth.update(now)

        # --- Accumulate discrete events for logging ---
        accumulated_merges += particle_system.merges_this_tick
        accumulated_splits += particle_system.splits_this_tick
        accumulated_fragments += particle_system.fragments_this_tick

        # --- Logging (throttled) ---
        if tick % constants.LOG_INTERVAL_TICKS == 0:
            total_mass = particle_system.get_total_mass()
            delta_mass = total_mass - last_logged_mass
            last_logged_mass = total_mass
            momentum = particle_system.get_total_momentum()

            logger.debug(
                f"Tick={tick}, "
                f"Particles={particle_system.num_particles}, "
                f"TotalMass={total_mass:.2f}, "
                f"Delta_M={delta_mass:+.6f}, "
                f"Momentum=({momentum[0]:.2f}, {momentum[1]:.2f}), "
                f"Merges={accumulated_merges}, "
                f"Splits={accumulated_splits}, "
                f"Fragments={accumulated_fragments}, "
                f"Voices={len(synth.voices)}"
            )

            accumulated_merges = 0
            accumulated_splits = 0
            accumulated_fragments = 0

        # --- Drawing ---
        screen.fill(constants.BACKGROUND_COLOR)
        particle_system.draw(screen)
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

    return tick


def main():
    """
    Main function to initialize and run the star simulation.
    """
    # --- Setup ---
    with open('config.json', 'r') as f:
        config = json.load(f)
    logger_setup.setup_logging(config)
    sim_config = config['simulation']

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT))
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    particle_system = ParticleSystem(
        num_particles=sim_config['particle_count'],
        config=sim_config,
        rng=rng,
        bounds=(constants.WIDTH, constants.HEIGHT)
    )
    synth = MergeSynth(config.get('audio', {}), sim_config)

    ticks = run_simulation_loop(particle_system, synth, screen, clock)

    synth.stop_all()
    logger.info(f"Application shutting down after {ticks} ticks with {particle_system.num_particles} particles.")
    pygame.quit()

if __name__ == "__main__":
    main()
