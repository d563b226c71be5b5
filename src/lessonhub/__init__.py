"""Identity and session layer of the lessonhub lesson marketplace backend."""

__version__ = "0.1.0"
