"""Prometheus metrics instrumentation for the Agri IoT Dashboard."""

from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator, metrics

# Custom metrics for the gateway dashboard

# Poll cycles by outcome (success, no_data, transport_error)
poll_cycles_total = Counter(
    "agri_poll_cycles_total",
    "Total number of telemetry poll cycles",
    ["outcome"],
)

# Poll cycle duration histogram
poll_duration = Histogram(
    "agri_poll_duration_seconds",
    "Time spent fetching latest telemetry and history",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Desired-state submissions by outcome (success, failure)
shadow_updates_total = Counter(
    "agri_shadow_updates_total",
    "Total number of desired-state submissions to the gateway",
    ["outcome"],
)

# Telemetry loaded gauge
telemetry_loaded = Gauge(
    "agri_telemetry_loaded",
    "Whether the dashboard holds telemetry from the last poll (1=loaded, 0=not loaded)",
)


def setup_metrics(app) -> Instrumentator:
    """Set up Prometheus metrics instrumentation for FastAPI app."""
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/health", "/health/live", "/health/ready", "/metrics"],
        env_var_name="METRICS_ENABLED",
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )

    # Add default metrics
    instrumentator.add(
        metrics.default(
            metric_namespace="",
            metric_subsystem="",
            latency_highr_buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )
    )

    # Instrument the app
    instrumentator.instrument(app)

    return instrumentator


def expose_metrics(app, instrumentator: Instrumentator) -> None:
    """Expose the /metrics endpoint."""
    instrumentator.expose(app, include_in_schema=False, should_gzip=True)


# Helper functions for updating custom metrics


def record_poll_cycle(outcome: str, duration: float) -> None:
    """Record a finished poll cycle."""
    poll_cycles_total.labels(outcome=outcome).inc()
    poll_duration.observe(duration)


def record_shadow_update(outcome: str) -> None:
    """Increment desired-state submission counter."""
    shadow_updates_total.labels(outcome=outcome).inc()


def set_telemetry_loaded(loaded: bool) -> None:
    """Set telemetry loaded status."""
    telemetry_loaded.set(1 if loaded else 0)
