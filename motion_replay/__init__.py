"""Sensor replay for commanded-motion devices.

This package synthesizes live motion-sensor readings from recorded motion
captures so that a device whose reported position and velocity are being
overridden also produces consistent inertial telemetry:
- capture: Recorded capture ingestion, frames, tracks and regime bindings
- coords: Heading rotation of device-frame sensor vectors
- replay: Idle/moving replay state machine and the sensor query engine
- sim: Procedural gait synthesis for generating captures
- utils: Heading angle helpers
"""

__version__ = "0.1.0"
