"""Steak Call Agent: phone dialogue that collects caller facts and texts steak instructions."""

__version__ = "1.0.0"
