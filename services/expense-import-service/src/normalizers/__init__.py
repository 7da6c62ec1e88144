"""Per-field and per-row normalization of tokenized CSV data."""
