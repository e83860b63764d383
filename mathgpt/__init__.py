"""MathGPT: equation editor front end for a text-completion API."""

__version__ = "0.1.0"
