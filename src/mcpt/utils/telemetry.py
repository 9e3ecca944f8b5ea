"""OpenTelemetry tracing helpers for mcpt.

Transports and the proxy responder open spans through :func:`get_tracer`.
Without a configured SDK the API hands back no-op tracers, so spans cost
nothing unless ``mcpt --telemetry`` (or :func:`configure_telemetry`) is used.

Usage::

    from mcpt.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("mcpt.transport.execute") as span:
        span.set_attribute(ATTR_METHOD, "tools/list")
"""

from __future__ import annotations

from opentelemetry import trace

ATTR_TRANSPORT = "mcpt.transport"
ATTR_METHOD = "mcpt.rpc.method"
ATTR_REQUEST_ID = "mcpt.rpc.id"
ATTR_TOOL_NAME = "mcpt.tool.name"
ATTR_EXIT_CODE = "mcpt.process.exit_code"
ATTR_HTTP_STATUS = "mcpt.http.status_code"

_INSTRUMENTATION_NAME = "mcpt"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name*; a no-op tracer when no SDK is configured."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(*, service_name: str = "mcpt", otlp_endpoint: str | None = None) -> None:
    """Export spans to stderr, and optionally to an OTLP endpoint.

    Raises
    ------
    ImportError
        If ``opentelemetry-sdk`` (the ``otel`` extra) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install mcpt[otel]"
        )
        raise ImportError(msg) from exc

    import sys

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    # stdout is reserved for protocol frames and command output.
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            msg = (
                "opentelemetry-exporter-otlp is required for OTLP export. "
                "Install it with: pip install mcpt[otel]"
            )
            raise ImportError(msg) from exc
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    trace.set_tracer_provider(provider)
