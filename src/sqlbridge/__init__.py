"""
SQLBridge - dialect-aware SQL generation and incremental table polling.

Maps a canonical record schema to and from the SQL dialect of a relational
database (DDL, UPSERT, parameterized SELECT) and drives stateful, incremental
polling of source tables and queries.
"""

__version__ = "0.1.0"
