"""Cross-cutting infrastructure: logging configuration and Logfire monitoring."""
