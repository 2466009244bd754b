"""cratewatch: find Cargo dependencies that have outgrown their version requirements."""

__version__ = "0.1.0"
