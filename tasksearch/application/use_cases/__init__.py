"""Use cases: indexing, index event handling, search and suggestions."""
