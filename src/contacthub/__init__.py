"""contacthub: contact directory and CPC contactability gate."""

__version__ = "0.1.0"
