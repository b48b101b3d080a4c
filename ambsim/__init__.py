"""Real-time ambulance dispatch simulator."""

__version__ = '1.0.0'
