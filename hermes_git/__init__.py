"""hermes: intent-driven Git, guided by AI."""

__version__ = "0.2.3"
