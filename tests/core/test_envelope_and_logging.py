import json
from datetime import datetime, timedelta, timezone

from core.exceptions import KIND_TO_STATUS
from core.logging_config import REDACTED, redact_sensitive
from core.response import error_response, utc_isoformat
from infrastructure.models.base import UTCDateTime
from shared.codes import BusinessCode, ErrorKind


def test_every_error_kind_has_a_status():
    assert set(KIND_TO_STATUS) == set(ErrorKind)
    assert KIND_TO_STATUS[ErrorKind.CONFLICT] == 400
    assert KIND_TO_STATUS[ErrorKind.AUTHENTICATION] == 401
    assert KIND_TO_STATUS[ErrorKind.AUTHORIZATION] == 403


def test_error_response_envelope():
    response = error_response(
        status_code=403,
        code=BusinessCode.FORBIDDEN,
        message="Permission denied",
        kind=ErrorKind.AUTHORIZATION,
        error_type="PermissionDenied",
        details={"required_right": "create_article"},
        request_id="req-1",
    )
    body = json.loads(response.body)

    assert response.status_code == 403
    assert body["code"] == BusinessCode.FORBIDDEN
    assert body["data"] is None
    assert body["error"]["kind"] == "authorization"
    assert body["error"]["details"] == {"required_right": "create_article"}
    assert body["error"]["request_id"] == "req-1"
    assert body["error"]["timestamp"].endswith("Z")


def test_error_response_extra_headers():
    response = error_response(
        status_code=401,
        code=BusinessCode.UNAUTHORIZED,
        message="Not authenticated",
        kind=ErrorKind.AUTHENTICATION,
        headers={"WWW-Authenticate": "Bearer"},
    )
    assert response.headers["www-authenticate"] == "Bearer"


def test_utc_isoformat_normalizes_offsets():
    naive = datetime(2026, 3, 1, 10, 0, 0)
    shifted = datetime(2026, 3, 1, 18, 0, 0, tzinfo=timezone(timedelta(hours=8)))

    assert utc_isoformat(naive) == "2026-03-01T10:00:00Z"
    assert utc_isoformat(shifted) == "2026-03-01T10:00:00Z"


def test_utc_datetime_column_reads_back_aware():
    column_type = UTCDateTime()
    value = column_type.process_result_value(datetime(2026, 3, 1, 10, 0), dialect=None)

    assert value.tzinfo is timezone.utc
    assert column_type.process_result_value(None, dialect=None) is None


def test_redact_sensitive_masks_credentials():
    event = redact_sensitive(None, "info", {
        "event": "login_attempt",
        "password": "hunter2",
        "Authorization": "Bearer abc",
        "username": "alice",
        "token": None,
    })

    assert event["password"] == REDACTED
    assert event["Authorization"] == REDACTED
    assert event["username"] == "alice"
    assert event["token"] is None


async def test_health_endpoint(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"
