"""
Marker data engines.

An engine answers "which markers are inside these bounds" for a viewport fetch.
The in-memory engine is the default; DuckDB backs larger or persisted datasets.
"""
