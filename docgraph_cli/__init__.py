"""DocGraph CLI: type graph resolution and documentation aggregation."""

__version__ = "0.3.0"
