"""Application services that orchestrate domain objects."""
