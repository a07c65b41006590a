from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.core import HealthStatus, ServiceHealth

UNREACHABLE = "redis://127.0.0.1:1/0"


def client_for(health):
    app = FastAPI()
    app.include_router(health.create_health_router())
    return TestClient(app)


def test_overall_status_is_the_worst_check():
    pass_ = {"status": HealthStatus.PASS}
    warn = {"status": HealthStatus.WARN}
    fail = {"status": HealthStatus.FAIL}

    assert ServiceHealth.calculate_overall_status({"a": pass_}) == HealthStatus.PASS
    assert ServiceHealth.calculate_overall_status({"a": pass_, "b": warn}) == HealthStatus.WARN
    assert ServiceHealth.calculate_overall_status({"a": warn, "b": fail}) == HealthStatus.FAIL


def test_missing_broker_degrades_or_fails_by_role():
    degraded = ServiceHealth("asset-service", broker_url=UNREACHABLE)
    required = ServiceHealth("history-service", broker_url=UNREACHABLE, broker_required=True)

    assert degraded.perform_readiness_checks()["broker:connectivity"]["status"] == HealthStatus.WARN
    assert required.perform_readiness_checks()["broker:connectivity"]["status"] == HealthStatus.FAIL


def test_ready_returns_503_when_a_required_broker_is_down():
    client = client_for(ServiceHealth("history-service", broker_url=UNREACHABLE, broker_required=True))

    resp = client.get("/health/ready")

    assert resp.status_code == 503
    assert resp.json()["status"] == "fail"


def test_database_check_uses_the_configured_url():
    health = ServiceHealth("asset-service", database_url="sqlite://")

    checks = health.perform_readiness_checks()

    assert checks["database:connectivity"]["status"] == HealthStatus.PASS
    assert health.checks_performed == 1


def test_metrics_report_process_stats():
    data = client_for(ServiceHealth("asset-service")).get("/metrics").json()

    assert data["service"] == "asset-service"
    assert data["system"]["num_threads"] >= 1
