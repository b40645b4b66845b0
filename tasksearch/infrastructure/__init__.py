"""Infrastructure: search engine clients, event streams, history store, entity sources."""
