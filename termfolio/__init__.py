"""termfolio: a portfolio browsable from a simulated shell, built with Textual."""

__version__ = "0.5.0"
