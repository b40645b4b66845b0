"""Application DTOs: search documents, pages and request/result objects."""
