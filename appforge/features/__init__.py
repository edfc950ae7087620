"""Events and tracing."""
