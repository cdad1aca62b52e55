"""
Tests for the request validator: body parsing, session checks,
orchestration and the error → response mapping.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import urlencode

import pytest
from pydantic import ValidationError
from starlette.requests import Request

from api.errors import (
    AccessDeniedError,
    CollectionAlreadyExistsError,
    InvalidSessionError,
    ResourceNotFoundError,
    SchemaValidationError,
    UnclassifiedError,
)
from api.validation import GENERIC_ERROR_MESSAGE, Validate
from auth.sessions import SessionValidation
from utils.schemas import (
    AuthenticateUserSchema,
    RegisterUserSchema,
    ValidationFailure,
    ValidationIssue,
    ValidationSuccess,
)


def _request(path: str, method: str, body: bytes = b"", content_type: str = "application/json") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [(b"content-type", content_type.encode())],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def _json_request(path: str, method: str, payload) -> Request:
    return _request(path, method, json.dumps(payload).encode())


def _session_manager(result: SessionValidation) -> MagicMock:
    manager = MagicMock()
    manager.session_cookie_name = "auth_session"
    manager.validate_session = AsyncMock(return_value=result)
    return manager


class TestValidateBody:
    @pytest.mark.asyncio
    async def test_well_formed_body(self):
        req = _json_request("/api/v1/auth", "PUT", {"email": "known@x.com", "password": "rightpass"})
        result = await Validate.validate_body(req)

        assert isinstance(result, ValidationSuccess)
        assert result.success is True
        assert isinstance(result.data, AuthenticateUserSchema)
        assert result.data.model_dump() == {"email": "known@x.com", "password": "rightpass"}

    @pytest.mark.asyncio
    async def test_one_issue_per_violation_in_field_order(self):
        req = _json_request("/api/v1/auth", "PUT", {"email": "nope", "password": ""})
        result = await Validate.validate_body(req)

        assert isinstance(result, ValidationFailure)
        assert result.success is False
        assert [i.path for i in result.issues] == ["email", "password"]
        assert all(i.message for i in result.issues)

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        req = _json_request("/api/v1/auth", "POST", {"email": "a@b.co"})
        result = await Validate.validate_body(req)

        assert not result.success
        assert [i.path for i in result.issues] == ["username", "password"]

    @pytest.mark.asyncio
    async def test_form_encoded_body(self):
        body = urlencode({"username": "Known", "email": "known@x.com", "password": "rightpass"})
        req = _request(
            "/api/v1/auth", "POST", body.encode(), "application/x-www-form-urlencoded"
        )
        result = await Validate.validate_body(req)

        assert result.success
        assert isinstance(result.data, RegisterUserSchema)
        assert result.data.username == "Known"

    @pytest.mark.asyncio
    async def test_unmatched_route_uses_permissive_schema(self):
        req = _json_request("/api/v1/other", "POST", {"free": "form"})
        result = await Validate.validate_body(req)

        assert result.success
        assert result.data.model_dump() == {"free": "form"}

    @pytest.mark.asyncio
    async def test_malformed_json_is_raised_unchanged(self):
        req = _request("/api/v1/auth", "PUT", b"{not json")
        with pytest.raises(ValueError):
            await Validate.validate_body(req)


class TestValidateParams:
    @pytest.mark.asyncio
    async def test_params_pass_through(self):
        params = {"id": "42"}
        result = await Validate.validate_params(_request("/api/v1/user", "GET"), params)
        assert result is params


class TestValidateSession:
    @pytest.mark.asyncio
    async def test_missing_cookie_is_invalid(self):
        manager = _session_manager(SessionValidation())
        with patch("api.validation.session_manager", manager):
            with pytest.raises(InvalidSessionError):
                await Validate.validate_session({})
        manager.validate_session.assert_awaited_once_with("")

    @pytest.mark.asyncio
    async def test_unknown_or_expired_cookie_is_invalid(self):
        manager = _session_manager(SessionValidation())
        with patch("api.validation.session_manager", manager):
            with pytest.raises(InvalidSessionError):
                await Validate.validate_session({"auth_session": "stale"})
        manager.validate_session.assert_awaited_once_with("stale")

    @pytest.mark.asyncio
    async def test_valid_cookie_returns_manager_result(self):
        expected = SessionValidation(user=MagicMock(), session=MagicMock())
        manager = _session_manager(expected)
        with patch("api.validation.session_manager", manager):
            result = await Validate.validate_session({"auth_session": "abc"})

        assert result is expected
        assert result.user is expected.user
        assert result.session is expected.session


class TestValidateRequest:
    @pytest.mark.asyncio
    async def test_nothing_supplied(self):
        with patch.object(Validate, "validate_session", new_callable=AsyncMock) as vs, \
             patch.object(Validate, "validate_body", new_callable=AsyncMock) as vb:
            result = await Validate.validate_request()

        assert result.session is None
        assert result.body is None
        vs.assert_not_awaited()
        vb.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cookies_only(self):
        session = SessionValidation(user=MagicMock(), session=MagicMock())
        with patch.object(Validate, "validate_session", new_callable=AsyncMock) as vs, \
             patch.object(Validate, "validate_body", new_callable=AsyncMock) as vb:
            vs.return_value = session
            result = await Validate.validate_request(cookies={"auth_session": "abc"})

        assert result.session is session
        assert result.body is None
        vb.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_only(self):
        req = _json_request("/api/v1/auth", "PUT", {"email": "known@x.com", "password": "x"})
        with patch.object(Validate, "validate_session", new_callable=AsyncMock) as vs:
            result = await Validate.validate_request(request=req)

        assert result.session is None
        assert result.body.success
        vs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_session_short_circuits(self):
        req = _json_request("/api/v1/user", "PATCH", {"username": "Someone"})
        manager = _session_manager(SessionValidation())
        with patch("api.validation.session_manager", manager):
            with pytest.raises(InvalidSessionError):
                await Validate.validate_request(cookies={}, request=req)


class TestHandleError:
    @pytest.mark.parametrize(
        "error, status, body",
        [
            (InvalidSessionError(), 401, b"Invalid Session"),
            (ResourceNotFoundError(), 404, b"Resource not found"),
            (AccessDeniedError(), 403, b"Access denied"),
            (CollectionAlreadyExistsError("Email already registered"), 409, b"Email already registered"),
            (UnclassifiedError("boom"), 500, GENERIC_ERROR_MESSAGE.encode()),
            (RuntimeError("boom"), 500, GENERIC_ERROR_MESSAGE.encode()),
            ("not even an exception", 500, GENERIC_ERROR_MESSAGE.encode()),
            (None, 500, GENERIC_ERROR_MESSAGE.encode()),
        ],
    )
    def test_status_and_body(self, error, status, body):
        response = Validate.handle_error(error)
        assert response.status_code == status
        assert response.body == body

    def test_schema_validation_error_serializes_issues(self):
        issues = [
            ValidationIssue(path="email", message="bad email"),
            ValidationIssue(path="password", message="too short"),
        ]
        response = Validate.handle_error(SchemaValidationError(issues))

        assert response.status_code == 400
        assert json.loads(response.body) == [
            {"path": "email", "message": "bad email"},
            {"path": "password", "message": "too short"},
        ]

    def test_raw_pydantic_error_is_a_400(self):
        with pytest.raises(ValidationError) as info:
            AuthenticateUserSchema.model_validate({})
        response = Validate.handle_error(info.value)

        assert response.status_code == 400
        assert [i["path"] for i in json.loads(response.body)] == ["email", "password"]
