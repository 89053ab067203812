"""Live telemetry and reputation monitor for Conduit relay nodes."""

__version__ = "0.1.0"
