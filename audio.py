# audio.py

import logging
from collections import deque
from enum import Enum
from typing import Optional

import numba
import numpy as np
import pygame

import constants
from particle import map_range, mass_from_radius

logger = logging.getLogger("star_sim")


class VoiceState(Enum):
    IDLE = 0
    ATTACK = 1
    SUSTAIN = 2
    RELEASE = 3


@numba.jit(nopython=True)
def _lowpass_jit(samples, alpha):
    """One-pole low-pass filter: y[n] = y[n-1] + alpha * (x[n] - y[n-1])."""
    out = np.empty_like(samples)
    y = 0.0
    for n in range(samples.shape[0]):
        y += alpha * (samples[n] - y)
        out[n] = y
    return out


def synthesize_tone(frequency: float, duration: float, sample_rate: int,
                    harmonic_ratio: float = 1.5, harmonic_gain: float = 0.3,
                    cutoff: float = 800.0) -> np.ndarray:
    """
    Renders the merge tone: a sine at the base frequency plus a quieter triangle
    at harmonic_ratio times the base frequency, low-pass filtered.

    Data Contract:
    - Outputs: float64 samples in [-1, 1], duration * sample_rate long.
    """
    t = np.arange(int(duration * sample_rate)) / sample_rate
    sine = np.sin(2.0 * np.pi * frequency * t)
    phase = (harmonic_ratio * frequency * t) % 1.0
    triangle = 4.0 * np.abs(phase - 0.5) - 1.0
    wave = (sine + harmonic_gain * triangle) / (1.0 + harmonic_gain)
    alpha = 1.0 - np.exp(-2.0 * np.pi * cutoff / sample_rate)
    return _lowpass_jit(wave, alpha)


def stereo_gains(gain: float, pan: float):
    """
    Splits a gain into (left, right) channel volumes with an equal-power pan law.
    pan is clamped to [0, 1]; 0.5 puts the same volume on both sides.
    """
    pan = min(max(pan, 0.0), 1.0)
    return gain * np.cos(pan * np.pi / 2), gain * np.sin(pan * np.pi / 2)


class Voice:
    """
    A single sounding merge tone and its amplitude envelope.

    IDLE -> ATTACK (linear fade in) -> SUSTAIN (until `hold` seconds after the
    trigger) -> RELEASE (linear fade out) -> IDLE. cancel() jumps straight to IDLE.
    """
    def __init__(self, frequency: float, amplitude: float, attack: float, hold: float, release: float,
                 pan: float = 0.5):
        self.frequency = frequency
        self.amplitude = amplitude
        self.attack = attack
        self.hold = hold
        self.release = release
        self.pan = pan  # 0.0 is hard left, 1.0 hard right
        self.state = VoiceState.IDLE
        self.triggered_at = None
        self.handle = None  # Backend playback handle

    @property
    def duration(self) -> float:
        return max(self.hold, self.attack) + self.release

    def trigger(self, now: float):
        self.state = VoiceState.ATTACK
        self.triggered_at = now

    def cancel(self):
        self.state = VoiceState.IDLE

    def advance(self, now: float) -> float:
        """Moves the envelope to time `now` and returns the current gain."""
        if self.state is VoiceState.IDLE:
            return 0.0

        elapsed = now - self.triggered_at
        release_start = max(self.hold, self.attack)
        if elapsed < self.attack:
            self.state = VoiceState.ATTACK
            return self.amplitude * elapsed / self.attack
        if elapsed < release_start:
            self.state = VoiceState.SUSTAIN
            return self.amplitude
        if elapsed < release_start + self.release:
            self.state = VoiceState.RELEASE
            return self.amplitude * (1.0 - (elapsed - release_start) / self.release)

        self.state = VoiceState.IDLE
        return 0.0


class SilentBackend:
    """Playback backend used when audio is disabled or no device is available."""
    def start(self, voice: Voice):
        return None

    def set_gain(self, handle, gain: float, pan: float = 0.5):
        pass

    def stop(self, handle):
        pass


class PygameMixerBackend:
    """
    Plays voices through the pygame mixer. Each voice gets its own pre-rendered
    buffer on a free mixer channel; the envelope and pan are applied as the
    channel's left/right volume.
    """
    def __init__(self, config: dict):
        pygame.mixer.init(frequency=config.get('sample_rate', 44100), size=-16, channels=2)
        self.sample_rate, _, self.channels = pygame.mixer.get_init()
        pygame.mixer.set_num_channels(max(8, config.get('max_voices', 3) * 2))
        self.harmonic_ratio = config.get('harmonic_ratio', 1.5)
        self.harmonic_gain = config.get('harmonic_gain', 0.3)
        self.cutoff = config.get('lowpass_cutoff', 800.0)
        logger.info(f"Audio mixer initialized: {self.sample_rate} Hz, {self.channels} channel(s).")

    def start(self, voice: Voice):
        samples = synthesize_tone(
            voice.frequency,
            voice.duration,
            self.sample_rate,
            harmonic_ratio=self.harmonic_ratio,
            harmonic_gain=self.harmonic_gain,
            cutoff=self.cutoff
        )
        pcm = (samples * 32767).astype(np.int16)
        if self.channels > 1:
            pcm = np.ascontiguousarray(np.repeat(pcm[:, np.newaxis], self.channels, axis=1))
        sound = pygame.sndarray.make_sound(pcm)
        channel = sound.play()
        if channel is not None:
            channel.set_volume(0.0, 0.0)
        return channel

    def set_gain(self, handle, gain: float, pan: float = 0.5):
        if handle is not None:
            left, right = stereo_gains(gain, pan)
            handle.set_volume(float(left), float(right))

    def stop(self, handle):
        if handle is not None:
            handle.stop()


def create_backend(config: dict):
    """Returns the pygame mixer backend, or a silent one if audio is disabled or unavailable."""
    if not config.get('enabled', True):
        logger.info("Audio disabled in config.")
        return SilentBackend()
    try:
        return PygameMixerBackend(config)
    except pygame.error as e:
        logger.warning(f"Audio device unavailable ({e}). Merge sounds are disabled.")
        return SilentBackend()


class MergeSynth:
    """
    Turns merge events into short dual tones.

    Smaller merges sound higher and quieter, larger merges lower and louder:
    the merged mass is mapped linearly from [mass of an initial star, mass at the
    split threshold] onto [freq_high, freq_low] and [amp_low, amp_high]. Merges
    past the threshold mass stay at freq_low and amp_high. Each voice is panned
    by the horizontal position of its merge.
    At most max_voices voices sound at once; a new voice cancels the oldest.

    Data Contract:
    - Inputs:
        - config (dict): The 'audio' section of the config file.
        - sim_config (dict): The 'simulation' section of the config file.
        - backend: Optional playback backend. Defaults to create_backend(config).
        - width (float): Canvas width, for panning.
    - Invariants: len(self.voices) <= max_voices.
    """
    def __init__(self, config: dict, sim_config: dict, backend=None, width: float = constants.WIDTH):
        self.config = config
        self.max_voices = config.get('max_voices', 3)
        self.mass_low = mass_from_radius(sim_config['initial_radius'])
        self.mass_high = mass_from_radius(sim_config['split_threshold'])
        self.width = width
        self.voices = deque()
        self.backend = backend if backend is not None else create_backend(config)

    def tone_for_mass(self, mass: float):
        """Returns (frequency, amplitude) for a merge that produced the given mass."""
        mass = min(mass, self.mass_high)
        frequency = map_range(
            mass, self.mass_low, self.mass_high,
            self.config.get('freq_high', 400.0), self.config.get('freq_low', 100.0)
        )
        amplitude = map_range(
            mass, self.mass_low, self.mass_high,
            self.config.get('amp_low', 0.05), self.config.get('amp_high', 0.15)
        )
        return frequency, amplitude

    def on_merge(self, mass: float, now: float, pan: float = 0.5) -> Optional[Voice]:
        """Starts a voice for one merge event, cancelling the oldest voice if at capacity."""
        if self.max_voices <= 0:
            return None
        while len(self.voices) >= self.max_voices:
            self._stop(self.voices.popleft())

        frequency, amplitude = self.tone_for_mass(mass)
        voice = Voice(
            frequency,
            amplitude,
            self.config.get('attack', 0.05),
            self.config.get('hold', 0.1),
            self.config.get('release', 0.1),
            pan=pan
        )
        voice.trigger(now)
        voice.handle = self.backend.start(voice)
        self.voices.append(voice)
        return voice

    def on_merges(self, events: list, now: float):
        """
        Triggers voices for a frame's merge events. All events of a frame share
        the same timestamp, so only the last max_voices of them would survive the
        voice cap; the earlier ones are not started at all.
        """
        if self.max_voices <= 0:
            return
        for event in events[-self.max_voices:]:
            self.on_merge(event.mass, now, pan=event.position[0] / self.width)

    def update(self, now: float):
        """Advances every voice envelope and releases finished voices."""
        for voice in list(self.voices):
            gain = voice.advance(now)
            if voice.state is VoiceState.IDLE:
                self._stop(voice)
                self.voices.remove(voice)
            else:
                self.backend.set_gain(voice.handle, gain, voice.pan)

    def stop_all(self):
        while self.voices:
            self._stop(self.voices.popleft())

    def _stop(self, voice: Voice):
        voice.cancel()
        self.backend.stop(voice.handle)
