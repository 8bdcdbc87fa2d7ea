from contextlib import contextmanager
import time
from typing import Any
from urllib.parse import urlparse

from .schemas import TraceStep
from .settings import settings

if settings.dd_trace_enabled:
    try:
        from ddtrace import tracer
        if settings.dd_trace_agent_url:
            parsed = urlparse(settings.dd_trace_agent_url)
            if parsed.scheme in {'http', 'https'} and parsed.hostname:
                tracer.configure(
                    hostname=parsed.hostname,
                    port=parsed.port or 8126,
                    https=(parsed.scheme == 'https'),
                )
            elif parsed.scheme == 'unix' and parsed.path:
                tracer.configure(uds_path=parsed.path)
    except Exception:  # pragma: no cover
        tracer = None
else:
    tracer = None


def _open_span(name: str, tags: dict[str, str]) -> Any:
    if tracer is None:
        return None
    span = tracer.trace(f'wallet_tracker.{name}', service=settings.dd_service, resource=name)
    span.set_tag('env', settings.dd_env)
    span.set_tag('version', settings.dd_version)
    for key, value in tags.items():
        span.set_tag(key, value)
    return span


class TraceCollector:
    """Step timings for one wallet update, mirrored as ddtrace spans when tracing is on."""

    def __init__(self, wallet_key: str | None = None) -> None:
        self.wallet_key = wallet_key
        self.steps: list[TraceStep] = []

    @contextmanager
    def step(self, name: str, detail: str | None = None):
        tags = {k: v for k, v in (('wallet', self.wallet_key), ('detail', detail)) if v}
        span = _open_span(name, tags)
        started = time.perf_counter()
        error: Exception | None = None
        try:
            yield
        except Exception as exc:
            error = exc
            if span is not None:
                span.set_tag('error', 1)
                span.set_tag('error.msg', str(exc))
            raise
        finally:
            self.steps.append(
                TraceStep(
                    step=name,
                    duration_ms=int((time.perf_counter() - started) * 1000),
                    ok=error is None,
                    detail=detail if error is None else str(error),
                )
            )
            if span is not None:
                span.finish()

    def as_list(self) -> list[TraceStep]:
        return self.steps

    @property
    def total_ms(self) -> int:
        return sum(step.duration_ms for step in self.steps)
