"""Future Echoes: time capsules that reveal themselves later."""

__version__ = "1.0.0"
