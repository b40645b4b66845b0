"""Application services: query DSL and builders, document mapping, ranking, parsing."""
