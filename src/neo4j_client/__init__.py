"""Command-line shell for Neo4j graph databases."""

__version__ = "0.1.0"
