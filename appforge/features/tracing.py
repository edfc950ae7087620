"""OpenTelemetry helpers.

Only the OpenTelemetry API is used. Spans are no-ops unless the
host process installs a tracer provider.
"""

from opentelemetry import trace

TRACER_NAME = "appforge"


def get_tracer():
    """Get the tracer used for workflow and step spans."""
    return trace.get_tracer(TRACER_NAME)
