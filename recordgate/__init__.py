"""recordgate: IP-range authentication and remote log ingestion over a record store."""

__version__ = "0.1.0"
