"""tapeforge: evolve tape-language programs that print a target string."""

__version__ = "0.1.0"
