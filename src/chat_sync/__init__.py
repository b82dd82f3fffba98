"""Client side synchronization engine for polling based one-to-one chat."""

__version__ = "0.1.0"
