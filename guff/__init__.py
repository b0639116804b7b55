"""guff: short looping GIFs from a text prompt."""

__version__ = "0.1.0"
