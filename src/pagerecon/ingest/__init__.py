"""Document ingestion: page extraction, chunking and the ingestion job."""
