"""Durable workflow primitives: workflows, contexts, checkpointed steps, run state."""
