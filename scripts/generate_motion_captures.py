"""
Generate synthetic motion captures for sensor replay.

Creates capture documents in the recorded-capture format with:
    - Accelerometer, gyroscope and magnetometer streams from a gait model
    - Gravity and linear acceleration streams
    - Step detector events and a cumulative step counter derived from
      accelerometer peaks

Saves to: <output>/<preset>.json

The walking presets face the replay reference heading (180°, due South) so
that the engine's heading rotation is exact for them.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motion_replay.capture import TYPE_STEP_COUNTER, ingest_document, save_capture
from motion_replay.sim import synthesize_capture


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'idle': {
        'description': 'Device lying flat, no steps',
        'duration_s': 20.0,
        'speed_mps': 0.0,
    },
    'walking': {
        'description': 'Normal walk at 1.4 m/s (~2 steps/s)',
        'duration_s': 60.0,
        'speed_mps': 1.4,
    },
    'brisk': {
        'description': 'Brisk walk at 1.9 m/s (~2.7 steps/s)',
        'duration_s': 60.0,
        'speed_mps': 1.9,
    },
}


def generate_capture(
    preset: str,
    output_dir: Path,
    heading_deg: float = 180.0,
    rate_hz: float = 100.0,
    step_base: float = 0.0,
    seed: int = 42,
) -> Path:
    """Generate one preset capture and write it to ``output_dir``."""
    config = PRESETS[preset]

    print(f"\n{preset}: {config['description']}")
    print(f"  Duration: {config['duration_s']:.1f} s, speed: {config['speed_mps']:.2f} m/s, "
          f"heading: {heading_deg:.1f} deg, rate: {rate_hz:.0f} Hz")

    document = synthesize_capture(
        duration_s=config['duration_s'],
        speed_mps=config['speed_mps'],
        heading_deg=heading_deg,
        rate_hz=rate_hz,
        seed=seed,
        step_base=step_base,
    )

    tracks, duration_ms = ingest_document(document)
    steps = tracks[TYPE_STEP_COUNTER].span(0)
    print(f"  Moments: {len(document['moments'])}, loop: {duration_ms} ms, "
          f"steps per loop: {steps:.0f}")

    path = output_dir / f"{preset}.json"
    save_capture(document, path)
    print(f"  Saved: {path}")
    return path


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic motion captures for sensor replay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Presets:
  idle      Stationary device, 20 s
  walking   1.4 m/s walk, 60 s
  brisk     1.9 m/s walk, 60 s

Examples:
  # Generate the two captures the engine loads by default
  python scripts/generate_motion_captures.py --preset idle walking --output data/captures

  # Higher sample rate, counter starting at 1520 steps
  python scripts/generate_motion_captures.py --preset walking --rate 200 --step-base 1520
        """,
    )

    parser.add_argument(
        "--preset",
        type=str,
        nargs="+",
        choices=sorted(PRESETS),
        default=["idle", "walking"],
        help="Presets to generate (default: idle walking)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/captures",
        help="Output directory (default: data/captures)",
    )
    parser.add_argument(
        "--heading", type=float, default=180.0, help="Walking heading in degrees (default: 180)"
    )
    parser.add_argument(
        "--rate", type=float, default=100.0, help="Sample rate in Hz (default: 100)"
    )
    parser.add_argument(
        "--step-base", type=float, default=0.0, help="Initial step counter value (default: 0)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    args = parser.parse_args()

    print("=" * 70)
    print("Generating motion captures")
    print("=" * 70)

    output_dir = Path(args.output)
    for preset in args.preset:
        generate_capture(
            preset,
            output_dir,
            heading_deg=args.heading,
            rate_hz=args.rate,
            step_base=args.step_base,
            seed=args.seed,
        )

    print("\n" + "=" * 70)
    print("Capture generation complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
