"""layerlint - layered module architecture enforcement for JS/TS/Vue source trees."""

__version__ = "0.4.0"
