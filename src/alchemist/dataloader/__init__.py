"""Record ingestion helpers: engine config loading, schema checks, DataFrame conversion."""
