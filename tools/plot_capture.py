"""Visualize motion captures and simulated sensor replay.

Plots every vector track and the step counter of a capture. With --idle, also
replays a stop/walk/stop speed profile through the replay engine on a
simulated clock and plots the synthesized accelerometer and step counter.

Usage:
    python tools/plot_capture.py data/captures/walking.json
    python tools/plot_capture.py data/captures/walking.json --idle data/captures/idle.json
    python tools/plot_capture.py data/captures/walking.json --heading 90 --format png
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motion_replay.capture import (
    TYPE_ACCELEROMETER,
    TYPE_STEP_COUNTER,
    RegimeBinding,
    load_regime_binding,
    sensor_type_name,
)
from motion_replay.log import configure_logging
from motion_replay.replay import SensorReplayEngine, is_vector_sensor


def plot_tracks(binding: RegimeBinding, title: str) -> plt.Figure:
    """Plot each vector track and the step counter of a regime binding.

    Args:
        binding: Ingested capture.
        title: Figure title.

    Returns:
        Matplotlib figure.
    """
    types = [s for s in binding.sensor_types if is_vector_sensor(s)]
    if binding.has_track(TYPE_STEP_COUNTER):
        types.append(TYPE_STEP_COUNTER)

    fig, axes = plt.subplots(len(types), 1, figsize=(12, 2.5 * len(types)),
                             sharex=True, squeeze=False)
    for ax, sensor_type in zip(axes[:, 0], types):
        track = binding.tracks[sensor_type]
        t = track.offsets_ms / 1000.0
        values = np.array([f.values for f in track.frames])
        for axis in range(values.shape[1]):
            ax.plot(t, values[:, axis], linewidth=0.8, label='xyz'[axis] if axis < 3 else str(axis))
        ax.set_ylabel(sensor_type_name(sensor_type), fontsize=10)
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=8, loc='upper right')

    axes[-1, 0].set_xlabel('Time offset (s)', fontsize=12)
    fig.suptitle(f"{title} ({binding.duration_ms} ms loop)", fontsize=14, fontweight='bold')
    fig.tight_layout()
    return fig


def simulate_replay(
    idle: RegimeBinding,
    moving: RegimeBinding,
    heading_deg: float,
    rate_hz: float = 50.0,
) -> Dict[str, np.ndarray]:
    """Replay stop (10 s) / walk (30 s) / stop (10 s) on a simulated clock.

    Returns:
        Dictionary with 't', 'speed', 'accel' (N, 3) and 'steps' (N,).
    """
    t = np.arange(0.0, 50.0, 1.0 / rate_hz)
    speed = np.where((t >= 10.0) & (t < 40.0), 1.4, 0.0)

    clock = {'now': 0}
    engine = SensorReplayEngine(clock=lambda: clock['now'])
    engine.load_bindings(idle, moving)

    accel = np.full((len(t), 3), np.nan)
    steps = np.full(len(t), np.nan)
    samples = enumerate(zip(t, speed))
    for i, (ti, vi) in tqdm(samples, desc="Simulating replay", unit="sample", total=len(t)):
        clock['now'] = int(round(ti * 1000))
        a = engine.query(TYPE_ACCELEROMETER, vi, heading_deg)
        if a.size >= 3:
            accel[i] = a[:3]
        s = engine.query(TYPE_STEP_COUNTER, vi, heading_deg)
        if s.size:
            steps[i] = s[0]

    return {'t': t, 'speed': speed, 'accel': accel, 'steps': steps}


def plot_replay(result: Dict[str, np.ndarray], heading_deg: float) -> plt.Figure:
    """Plot commanded speed, replayed accelerometer and step counter."""
    fig, axes = plt.subplots(3, 1, figsize=(12, 8), sharex=True)
    t = result['t']

    axes[0].plot(t, result['speed'], 'k-', linewidth=1.5)
    axes[0].set_ylabel('Speed (m/s)', fontsize=10)

    for axis, label in enumerate('xyz'):
        axes[1].plot(t, result['accel'][:, axis], linewidth=0.8, label=label)
    axes[1].set_ylabel('Accel (m/s²)', fontsize=10)
    axes[1].legend(fontsize=8, loc='upper right')

    axes[2].plot(t, result['steps'], 'b-', linewidth=1.5)
    axes[2].set_ylabel('Step counter', fontsize=10)
    axes[2].set_xlabel('Time (s)', fontsize=12)

    for ax in axes:
        ax.grid(True, alpha=0.3)
    fig.suptitle(f"Simulated replay, heading {heading_deg:.0f}°", fontsize=14, fontweight='bold')
    fig.tight_layout()
    return fig


def plot_capture_overview(
    capture_path: str,
    idle_path: Optional[str] = None,
    heading_deg: float = 180.0,
    output_dir: Optional[str] = None,
    fmt: str = 'svg',
    show: bool = False,
) -> None:
    """Create and save all plots for a capture."""
    capture_path = Path(capture_path)
    output_dir = Path(output_dir) if output_dir else capture_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    moving = load_regime_binding(capture_path)
    fig = plot_tracks(moving, capture_path.name)
    out = output_dir / f"{capture_path.stem}_tracks.{fmt}"
    fig.savefig(out, dpi=150)
    print(f"Saved: {out}")

    if idle_path is not None:
        idle = load_regime_binding(idle_path)
        result = simulate_replay(idle, moving, heading_deg)
        fig = plot_replay(result, heading_deg)
        out = output_dir / f"{capture_path.stem}_replay.{fmt}"
        fig.savefig(out, dpi=150)
        print(f"Saved: {out}")

    if show:
        plt.show()
    else:
        plt.close('all')


def main():
    """Main entry point with CLI."""
    parser = argparse.ArgumentParser(
        description="Visualize a motion capture and its simulated replay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the tracks of a walking capture
  python %(prog)s data/captures/walking.json

  # Also simulate replay heading East
  python %(prog)s data/captures/walking.json --idle data/captures/idle.json --heading 90
        """
    )

    parser.add_argument('capture', type=str, help='Path to the walking capture JSON')
    parser.add_argument('--idle', type=str, default=None,
                        help='Path to the idle capture JSON (enables replay simulation)')
    parser.add_argument('--heading', type=float, default=180.0,
                        help='Commanded heading for the simulation in degrees (default: 180)')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory for plots (default: next to the capture)')
    parser.add_argument('--format', type=str, choices=['svg', 'png', 'pdf'], default='svg',
                        help='Output format (default: svg)')
    parser.add_argument('--show', action='store_true',
                        help='Display plots interactively (default: save only)')
    parser.add_argument('--verbose', action='store_true',
                        help='Log replay regime changes and step commits')

    args = parser.parse_args()
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    plot_capture_overview(
        capture_path=args.capture,
        idle_path=args.idle,
        heading_deg=args.heading,
        output_dir=args.output,
        fmt=args.format,
        show=args.show,
    )


if __name__ == "__main__":
    main()
