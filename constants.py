# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework.
These are not expected to change between simulation runs.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions
WIDTH = 600  # Pixels
HEIGHT = 600  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
BACKGROUND_COLOR = BLACK

# Window Title
TITLE = "Star Merger"

# Star classification by radius.
# Each entry is a tuple: (minimum_radius, (R, G, B) color), in ascending order.
STAR_TYPES = [
    (2,  (255, 80, 80)),     # Red dwarf
    (8,  (255, 160, 80)),    # Orange dwarf
    (15, (255, 255, 180)),   # Yellow star
    (30, (235, 245, 255)),   # White star
    (45, (150, 170, 255))    # Blue giant
]

# Visual Effects
TRAIL_OPACITY = 0.5      # Alpha of the newest trail sample, as a fraction of 255.
TRAIL_MIN_SCALE = 0.5    # Oldest trail disc diameter, as a multiple of the star radius.
TRAIL_MAX_SCALE = 2.0    # Newest trail disc diameter, as a multiple of the star radius.

# Telemetry
LOG_INTERVAL_TICKS = 100  # Frames between throttled debug log lines.
