import os
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "portfolio-chat-relay")
OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")    # 예: http://localhost:4318/v1/traces

_configured = False

def setup_tracing() -> bool:
    global _configured
    if not OTLP_ENDPOINT:
        return False  # 엔드포인트 없으면 비활성(로컬 기본), no-op tracer 사용
    if _configured:
        return True

    resource = Resource.create({"service.name": SERVICE_NAME})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=OTLP_ENDPOINT)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _configured = True
    return True

def get_tracer():
    return trace.get_tracer(SERVICE_NAME)
