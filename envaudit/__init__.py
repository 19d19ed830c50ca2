"""envaudit: environment variable discovery for JavaScript and polyglot projects."""

__version__ = "0.1.0"
