"""OpenTelemetry instruments for the HeartSmiles API.

Instruments are no-ops until a meter provider is installed by
:func:`heartsmiles.telemetry.setup_telemetry`.
"""

from typing import Final

from opentelemetry import metrics

meter: Final = metrics.get_meter("heartsmiles")

# Pipeline
request_duration: Final = meter.create_histogram(
    name="heartsmiles_request_duration_seconds",
    description="Time spent handling HTTP requests",
    unit="s",
)
requests_total: Final = meter.create_counter(
    name="heartsmiles_requests_total",
    description="HTTP requests handled, by method, route and status",
)
failed_requests_total: Final = meter.create_counter(
    name="heartsmiles_failed_requests_total",
    description="HTTP requests answered with a 4xx or 5xx status",
)
rate_limited_total: Final = meter.create_counter(
    name="heartsmiles_rate_limited_total",
    description="Requests rejected by the rate limiter",
)
process_faults_total: Final = meter.create_counter(
    name="heartsmiles_process_faults_total",
    description="Faults caught by the process supervisor",
)

# Domain
participants_imported_total: Final = meter.create_counter(
    name="heartsmiles_participants_imported_total",
    description="Participants created from CSV imports",
)
staff_registered_total: Final = meter.create_counter(
    name="heartsmiles_staff_registered_total",
    description="Staff accounts registered",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    attributes = {
        "method": method,
        "endpoint": endpoint,
        "status_code": str(status_code),
    }
    request_duration.record(duration, attributes)
    requests_total.add(1, attributes)
    if status_code >= 400:
        failed_requests_total.add(1, attributes)


def record_rate_limited(endpoint: str):
    rate_limited_total.add(1, {"endpoint": endpoint})


def record_process_fault(kind: str):
    """Count a fault by kind (unhandled_rejection or uncaught_exception)."""
    process_faults_total.add(1, {"kind": kind})


def record_participants_imported(count: int):
    if count:
        participants_imported_total.add(count)


def record_staff_registered(role: str):
    staff_registered_total.add(1, {"role": role})
