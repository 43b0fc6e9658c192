"""Analysis I/O boundary: external tools, feature extraction, cache files, indexing."""
