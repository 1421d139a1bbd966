"""Infrastructure helpers: logging and bounded polling."""
