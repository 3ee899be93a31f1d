"""Observability integration for role bootstrap operations."""

from __future__ import annotations

import json
import logging
import time
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any, Mapping

import msgspec

if TYPE_CHECKING:
    from .models import BootstrapResult


class BootstrapObservabilityConfig(msgspec.Struct, frozen=True):
    """Metrics and tracing names for bootstrap operations."""

    span_name: str = "helios.bootstrap"
    datadog_metric_role_created: str = "helios.roles.created"
    datadog_metric_permission_created: str = "helios.permissions.created"
    datadog_metric_error: str = "helios.bootstrap.errors"
    datadog_metric_timing: str = "helios.bootstrap.duration"


class ObservabilityConfig(msgspec.Struct, frozen=True):
    """Top-level observability configuration."""

    enabled: bool = True
    log_events: bool = True
    opentelemetry_enabled: bool = True
    opentelemetry_tracer: str = "helios"
    sentry_enabled: bool = True
    sentry_record_breadcrumbs: bool = True
    sentry_capture_exceptions: bool = True
    sentry_breadcrumb_category: str = "helios"
    sentry_breadcrumb_level: str = "info"
    datadog_enabled: bool = True
    datadog_tags: tuple[tuple[str, str], ...] = ()
    bootstrap: BootstrapObservabilityConfig = BootstrapObservabilityConfig()


class _ObservationContext:
    __slots__ = (
        "datadog_tags",
        "log_fields",
        "operation",
        "span",
        "stack",
        "start",
    )

    def __init__(
        self,
        *,
        operation: str,
        start: float,
        stack: ExitStack,
        span: Any | None,
        datadog_tags: tuple[str, ...],
        log_fields: Mapping[str, Any],
    ) -> None:
        self.operation = operation
        self.start = start
        self.stack = stack
        self.span = span
        self.datadog_tags = datadog_tags
        self.log_fields = dict(log_fields)

    def close(self, error: BaseException | None = None) -> None:
        if error is None:
            self.stack.__exit__(None, None, None)
        else:
            self.stack.__exit__(type(error), error, error.__traceback__)


class Observability:
    """Coordinate structured logging, tracing, error tracking and metrics."""

    def __init__(self, config: ObservabilityConfig | None = None) -> None:
        self.config = config or ObservabilityConfig()
        self._tracer = None
        self._internal_span_kind = None
        self._status_cls = None
        self._status_ok = None
        self._status_error = None
        self._sentry_hub = None
        self._statsd = None
        self._logger = logging.getLogger("helios.observability")
        self._base_datadog_tags = tuple(f"{key}:{value}" for key, value in self.config.datadog_tags)
        if self.config.enabled:
            self._prepare_opentelemetry()
            self._prepare_sentry()
            self._prepare_datadog()
        self._enabled = self.config.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _prepare_opentelemetry(self) -> None:
        if not self.config.opentelemetry_enabled:
            return
        try:
            from opentelemetry import trace  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._tracer = trace.get_tracer(self.config.opentelemetry_tracer)
        SpanKind = getattr(trace, "SpanKind", None)
        self._internal_span_kind = getattr(SpanKind, "INTERNAL", None) if SpanKind else None
        status_cls = getattr(trace, "Status", None)
        status_code_cls = getattr(trace, "StatusCode", None)
        if status_cls is not None and status_code_cls is not None:
            self._status_cls = status_cls
            self._status_ok = getattr(status_code_cls, "OK", None)
            self._status_error = getattr(status_code_cls, "ERROR", None)

    def _prepare_sentry(self) -> None:
        if not self.config.sentry_enabled:
            return
        try:
            import sentry_sdk  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._sentry_hub = sentry_sdk.Hub.current

    def _prepare_datadog(self) -> None:
        if not self.config.datadog_enabled:
            return
        try:
            from datadog import statsd  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._statsd = statsd

    def _status(self, code: Any, description: str | None = None) -> Any | None:
        if self._status_cls is None or code is None:
            return None
        if description is None:
            return self._status_cls(code)
        return self._status_cls(code, description=description)

    def _log(self, context: _ObservationContext | None, event: str, extra: Mapping[str, Any] | None = None) -> None:
        if not self.config.enabled or not self.config.log_events:
            return
        payload: dict[str, Any] = {}
        if context is not None:
            payload["operation"] = context.operation
            payload.update(context.log_fields)
        if extra:
            for key, value in extra.items():
                if value is not None:
                    payload[key] = value
        payload["event"] = event
        self._logger.info(json.dumps(payload, separators=(",", ":"), default=str))

    def _capture_exception(self, error: BaseException) -> None:
        if self._sentry_hub is not None and self.config.sentry_capture_exceptions:
            self._sentry_hub.capture_exception(error)

    def on_bootstrap_start(self, operation: str, scope: Mapping[str, Any]) -> _ObservationContext | None:
        if not self._enabled:
            return None
        fields = {key: value for key, value in scope.items() if value is not None}
        stack = ExitStack()
        span = None
        if self._tracer is not None:
            span = stack.enter_context(
                self._tracer.start_as_current_span(self.config.bootstrap.span_name, kind=self._internal_span_kind)
            )
            span.set_attribute("bootstrap.operation", operation)
            for key, value in fields.items():
                span.set_attribute(f"bootstrap.{key}", str(value))
        if self._sentry_hub is not None and self.config.sentry_record_breadcrumbs:
            self._sentry_hub.add_breadcrumb(
                category=self.config.sentry_breadcrumb_category,
                level=self.config.sentry_breadcrumb_level,
                message=f"bootstrap {operation}",
                data={key: str(value) for key, value in fields.items()},
            )
        tags = list(self._base_datadog_tags)
        tags.append(f"operation:{operation}")
        context = _ObservationContext(
            operation=operation,
            start=time.perf_counter(),
            stack=stack,
            span=span,
            datadog_tags=tuple(tags),
            log_fields=fields,
        )
        self._log(context, "bootstrap.start")
        return context

    def on_role_created(
        self,
        context: _ObservationContext | None,
        role_name: str,
        *,
        permission_count: int,
    ) -> None:
        if context is None:
            return
        if self._statsd is not None:
            tags = list(context.datadog_tags)
            self._statsd.increment(self.config.bootstrap.datadog_metric_role_created, tags=tags)
            self._statsd.increment(
                self.config.bootstrap.datadog_metric_permission_created,
                permission_count,
                tags=tags,
            )
        self._log(context, "bootstrap.role_created", {"role_name": role_name, "permissions": permission_count})

    def on_bootstrap_success(self, context: _ObservationContext | None, result: "BootstrapResult") -> None:
        if context is None:
            return
        duration_ms = (time.perf_counter() - context.start) * 1000.0
        if self._statsd is not None:
            self._statsd.timing(
                self.config.bootstrap.datadog_metric_timing,
                duration_ms,
                tags=list(context.datadog_tags) + ["result:success"],
            )
        if context.span is not None:
            context.span.set_attribute("bootstrap.result", "success")
            context.span.set_attribute("bootstrap.roles_created", len(result.created_roles))
            status = self._status(self._status_ok)
            if status is not None:
                context.span.set_status(status)
        self._log(
            context,
            "bootstrap.success",
            {
                "roles_created": len(result.created_roles),
                "permissions_created": result.created_permissions,
                "duration_ms": round(duration_ms, 3),
            },
        )
        context.close()

    def on_bootstrap_error(self, context: _ObservationContext | None, error: BaseException) -> None:
        if context is None:
            self._capture_exception(error)
            return
        if self._statsd is not None:
            self._statsd.increment(
                self.config.bootstrap.datadog_metric_error,
                tags=list(context.datadog_tags) + [f"error:{type(error).__name__}"],
            )
        if context.span is not None:
            context.span.set_attribute("bootstrap.result", "error")
            if hasattr(context.span, "record_exception"):
                context.span.record_exception(error)
            status = self._status(self._status_error, description=str(error))
            if status is not None:
                context.span.set_status(status)
        self._capture_exception(error)
        self._log(context, "bootstrap.error", {"error": type(error).__name__, "detail": str(error)})
        context.close(error)


__all__ = [
    "BootstrapObservabilityConfig",
    "Observability",
    "ObservabilityConfig",
]
