"""
Loading Screen
Splash shown once when the admin console starts.

Two variants:
  - progress : a 0-100 counter on a fixed tick with a status phrase per stage
  - video    : plays the logo animation with an external player, falling back
               to a timeout if the player cannot start or fails
Both call on_complete exactly once when done.
"""

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from tqdm import tqdm

from devduo.bus.events import bus, EVENT_LOADING_COMPLETE
from devduo.config import config

logger = logging.getLogger(__name__)

LOADING_STEPS = [
    'Initializing...',
    'Loading components...',
    'Setting up workspace...',
    'Connecting services...',
    'Finalizing setup...',
    'Welcome to Dev Duo!',
]

SETTLE_SECONDS = 0.5
VIDEO_SETTLE_SECONDS = 1.0
VIDEO_MAX_PLAYBACK_SECONDS = 120.0


@dataclass(frozen=True)
class LoadingPreset:
    variant: str  # 'progress' or 'video'
    duration_ms: int
    show_progress: bool


LOADING_PRESETS = {
    'default': LoadingPreset('progress', 3000, True),
    'video': LoadingPreset('video', 5000, False),
    'minimal': LoadingPreset('progress', 1500, False),
}
SCREEN_CHOICES = list(LOADING_PRESETS) + ['none']


def loading_phrase(progress: int) -> str:
    """Status phrase for a progress value between 0 and 100."""
    index = int(progress / 100 * len(LOADING_STEPS))
    return LOADING_STEPS[min(index, len(LOADING_STEPS) - 1)]


def run_progress_loader(
    on_complete: Callable[[], None],
    duration_ms: int = 3000,
    show_progress: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Advance 0 -> 100 one step per tick, then settle and call on_complete."""
    tick = duration_ms / 100 / 1000

    with tqdm(total=100, bar_format='{desc} {bar} {n}%', disable=not show_progress, leave=False) as bar:
        bar.set_description_str(loading_phrase(0))
        for progress in range(1, 101):
            sleep(tick)
            bar.set_description_str(loading_phrase(progress))
            bar.update(1)

    sleep(SETTLE_SECONDS)
    on_complete()


def run_video_loader(
    on_complete: Callable[[], None],
    src: str,
    player: str,
    timeout_ms: int = 5000,
    popen: Callable = subprocess.Popen,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    max_playback_seconds: float = VIDEO_MAX_PLAYBACK_SECONDS,
) -> str:
    """
    Play src with the player command. Returns 'ended' when playback finished on
    its own, 'fallback' when the timeout path completed the splash instead.

    timeout_ms only bounds start-up: a player still running when it expires is
    playing, and the splash waits for it to end (up to max_playback_seconds).
    A player that cannot start or exits with an error completes the splash
    once timeout_ms has passed since launch.
    """
    timeout = timeout_ms / 1000
    command = shlex.split(player) + [str(src)]
    started = clock()

    try:
        if not Path(src).exists():
            raise FileNotFoundError(f"Loading video not found: {src}")
        process = popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        try:
            returncode = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            try:
                returncode = process.wait(timeout=max_playback_seconds)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
                logger.warning(f"Video still playing after {max_playback_seconds}s; stopping it")
                sleep(VIDEO_SETTLE_SECONDS)
                on_complete()
                return 'fallback'
        if returncode == 0:
            sleep(VIDEO_SETTLE_SECONDS)
            on_complete()
            return 'ended'
        logger.warning(f"Video player exited with code {returncode}; using timeout fallback")
    except OSError as e:
        logger.warning(f"Video could not be played ({e}); using timeout fallback")

    remaining = timeout - (clock() - started)
    sleep(max(0.0, remaining))
    sleep(VIDEO_SETTLE_SECONDS)
    on_complete()
    return 'fallback'


def show_loading_screen(screen: Optional[str] = None, on_complete: Optional[Callable[[], None]] = None, **kwargs) -> None:
    """Run the configured splash (LOADING_SCREEN unless screen is given)."""
    screen = screen or config.LOADING_SCREEN

    def complete():
        if on_complete:
            on_complete()
        bus.emit(EVENT_LOADING_COMPLETE, {'screen': screen})

    if screen == 'none':
        complete()
        return

    preset = LOADING_PRESETS.get(screen)
    if preset is None:
        raise ValueError(f"Unknown loading screen '{screen}'. Choose from: {', '.join(SCREEN_CHOICES)}")

    if preset.variant == 'video':
        run_video_loader(complete, config.LOADING_VIDEO_SRC, config.LOADING_VIDEO_PLAYER,
                         timeout_ms=preset.duration_ms, **kwargs)
    else:
        run_progress_loader(complete, duration_ms=preset.duration_ms,
                            show_progress=preset.show_progress, **kwargs)
