"""Article-driven quiz generation API."""
