from __future__ import annotations

import json
import logging

import pytest

from helios import App, Observability, ObservabilityConfig, RoleInitializationService
from helios.exceptions import StoreUnavailableError
from tests.observability_stubs import (
    disable_optional_providers,
    setup_stub_datadog,
    setup_stub_opentelemetry,
    setup_stub_sentry,
)
from tests.support import RecordingPermissionStore, StaticEnvironments


def test_bootstrap_success_is_traced_and_measured(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    hub = setup_stub_sentry(monkeypatch)
    statsd = setup_stub_datadog(monkeypatch)
    observability = Observability(ObservabilityConfig(datadog_tags=(("env", "test"),)))
    service = RoleInitializationService(
        RecordingPermissionStore(), StaticEnvironments(()), observability=observability
    )

    service.init_namespace_roles("1000", "ns", "user")

    span = tracer.spans[-1]
    assert span.name == observability.config.bootstrap.span_name
    assert span.kind == "internal"
    assert span.attributes["bootstrap.operation"] == "namespace"
    assert span.attributes["bootstrap.app_id"] == "1000"
    assert span.attributes["bootstrap.result"] == "success"
    assert span.attributes["bootstrap.roles_created"] == 2
    assert span.status.status_code == "ok"
    assert span.ended
    assert hub.breadcrumbs[-1]["message"] == "bootstrap namespace"
    assert hub.captured == []
    created = [item for item in statsd.increments if item[0] == "helios.roles.created"]
    assert len(created) == 2
    assert "env:test" in created[0][2]
    assert "operation:namespace" in created[0][2]
    metric, _, tags = statsd.timings[-1]
    assert metric == "helios.bootstrap.duration"
    assert "result:success" in tags


def test_bootstrap_error_is_captured(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    hub = setup_stub_sentry(monkeypatch)
    statsd = setup_stub_datadog(monkeypatch)
    store = RecordingPermissionStore()
    store.fail_after("create_permissions")
    service = RoleInitializationService(store, StaticEnvironments(()), observability=Observability())

    with pytest.raises(StoreUnavailableError) as excinfo:
        service.init_app_roles(App(app_id="1000"), "user")

    span = tracer.spans[-1]
    assert span.attributes["bootstrap.result"] == "error"
    assert span.exceptions == [excinfo.value]
    assert span.exit_exception is excinfo.value
    assert span.status.status_code == "error"
    assert hub.captured == [excinfo.value]
    assert statsd.increments[-1][0] == "helios.bootstrap.errors"
    assert "error:StoreUnavailableError" in statsd.increments[-1][2]


def test_missing_providers_fall_back_to_logging(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    disable_optional_providers(monkeypatch)
    caplog.set_level(logging.INFO, logger="helios.observability")
    observability = Observability()
    assert observability.enabled

    context = observability.on_bootstrap_start("app", {"app_id": "1000", "namespace": None})
    assert context is not None
    assert context.span is None
    observability.on_bootstrap_error(context, RuntimeError("boom"))

    payloads = [json.loads(record.getMessage()) for record in caplog.records]
    assert payloads[0] == {"operation": "app", "app_id": "1000", "event": "bootstrap.start"}
    assert payloads[-1]["event"] == "bootstrap.error"
    assert payloads[-1]["detail"] == "boom"


def test_disabled_observability_is_silent(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="helios.observability")
    observability = Observability(ObservabilityConfig(enabled=False))

    assert observability.enabled is False
    assert observability.on_bootstrap_start("app", {"app_id": "1000"}) is None
    observability.on_role_created(None, "Master+1000", permission_count=3)
    assert caplog.records == []
