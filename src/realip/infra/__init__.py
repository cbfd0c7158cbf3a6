"""Infrastructure: Redis, cache stores, HTTP fetch, logging, tracing."""
