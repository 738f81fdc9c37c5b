"""Infrastructure layer: config, logging, events, Redis and database clients."""
