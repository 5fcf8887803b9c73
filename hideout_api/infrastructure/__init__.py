"""Infrastructure layer: DB pool, repositorios y adapters de servicios externos."""
