"""
Unit tests for the fault taxonomy and the error-code catalog.
"""

import pytest

from faultcore.errors.messages import (
    ERROR_MESSAGES,
    get_error_message,
    get_success_message,
    is_valid_error_code,
    is_valid_success_key,
    lookup_error_message,
)
from faultcore.errors.taxonomy import (
    UNKNOWN_ERROR_MESSAGE,
    ApiFault,
    AppFault,
    AuthAction,
    AuthFault,
    FaultKind,
    NetworkFault,
    NotFoundFault,
    PermissionFault,
    RateLimitFault,
    ValidationFault,
    classify,
    create_fault,
    extract_details,
    extract_message,
    get_error_summary,
    is_api_fault,
    is_app_fault,
    is_auth_fault,
    is_network_fault,
    is_not_found_fault,
    is_permission_fault,
    is_rate_limit_fault,
    is_validation_fault,
)


class TestVariants:
    """Tests for fault variant construction."""

    def test_app_fault_defaults(self):
        fault = AppFault("Something broke")
        assert fault.code == "APP_ERROR"
        assert fault.status_code == 500
        assert fault.is_user_facing is False
        assert fault.context == {}
        assert str(fault) == "Something broke"

    def test_api_fault(self):
        fault = ApiFault("Bad request", 400, method="POST", url="/api/users", duration=12.5)
        assert fault.code == "API_ERROR_400"
        assert fault.status_code == 400
        assert fault.is_user_facing is True
        assert fault.context == {"method": "POST", "url": "/api/users", "response_status": 400}

    def test_api_fault_server_error_not_user_facing(self):
        assert ApiFault("Down", 503).is_user_facing is False

    def test_validation_fault(self):
        fault = ValidationFault("Invalid", {"email": ["required"], "age": ["too low"]})
        assert fault.status_code == 400
        assert fault.code == "VALIDATION_ERROR"
        assert fault.context["field_count"] == 2
        assert fault.is_user_facing

    def test_network_fault_can_retry(self):
        assert NetworkFault("offline").can_retry is True
        assert NetworkFault("offline", retry_count=3, max_retries=3).can_retry is False
        assert NetworkFault("offline", should_retry=False).can_retry is False

    def test_auth_fault_code(self):
        fault = AuthFault("Expired", AuthAction.REFRESH)
        assert fault.code == "AUTH_ERROR_REFRESH"
        assert fault.status_code == 401
        assert fault.should_redirect_to_login is True

    def test_auth_fault_accepts_value(self):
        assert AuthFault("Nope", "logout").auth_action == AuthAction.LOGOUT

    def test_permission_fault(self):
        fault = PermissionFault("Denied", "users:delete", ["users:read"])
        assert fault.status_code == 403
        assert fault.context["held_capabilities"] == ["users:read"]

    def test_not_found_message(self):
        fault = NotFoundFault("User", "42")
        assert fault.message == 'User with ID "42" not found'
        assert fault.status_code == 404

    def test_rate_limit_fault(self):
        fault = RateLimitFault("Slow down", limit=10, current=11, reset_time=30000)
        assert fault.status_code == 429
        assert fault.reset_time == 30000

    def test_to_dict(self):
        data = NotFoundFault("Order", "o-1").to_dict()
        assert data["name"] == "NotFoundFault"
        assert data["code"] == "NOT_FOUND_ERROR"
        assert data["context"] == {"resource_type": "Order", "resource_id": "o-1"}

    def test_faults_are_exceptions(self):
        with pytest.raises(AppFault):
            raise ValidationFault("bad", {})


class TestGuards:
    """Tests for the is_* guards and classify."""

    def test_guards_are_specific(self):
        api = ApiFault("x", 500)
        assert is_app_fault(api) and is_api_fault(api)
        assert not is_validation_fault(api)
        assert is_validation_fault(ValidationFault("x", {}))
        assert is_network_fault(NetworkFault("x"))
        assert is_auth_fault(AuthFault("x"))
        assert is_permission_fault(PermissionFault("x", "cap"))
        assert is_not_found_fault(NotFoundFault("T", "1"))
        assert is_rate_limit_fault(RateLimitFault("x", 1, 2))
        assert not is_app_fault(ValueError("x"))

    @pytest.mark.parametrize("value,kind", [
        (ApiFault("x", 404), FaultKind.API),
        (ValidationFault("x", {}), FaultKind.VALIDATION),
        (RateLimitFault("x", 1, 2), FaultKind.RATE_LIMIT),
        (AppFault("x"), FaultKind.APP),
        (ValueError("x"), FaultKind.EXCEPTION),
        ("plain text", FaultKind.STRING),
        ({"weird": True}, FaultKind.OPAQUE),
        (None, FaultKind.OPAQUE),
    ])
    def test_classify(self, value, kind):
        assert classify(value) == kind


class TestExtraction:
    """Tests for message and detail extraction."""

    def test_extract_message(self):
        assert extract_message(ValueError("bad value")) == "bad value"
        assert extract_message(ValueError()) == "ValueError"
        assert extract_message("plain") == "plain"
        assert extract_message({"message": "from dict"}) == "from dict"
        assert extract_message(None) == UNKNOWN_ERROR_MESSAGE

    def test_extract_message_never_raises(self):
        class Hostile:
            def __str__(self):
                raise RuntimeError("no")

        assert extract_message(Hostile()) == UNKNOWN_ERROR_MESSAGE

    def test_extract_details_typed(self):
        try:
            raise NotFoundFault("User", "7")
        except NotFoundFault as exc:
            details = extract_details(exc)

        assert details.code == "NOT_FOUND_ERROR"
        assert details.status_code == 404
        assert details.context["resource_id"] == "7"
        assert "NotFoundFault" in details.stack

    def test_extract_details_untyped(self):
        details = extract_details(42)
        assert details.message == "42"
        assert details.code is None
        assert details.stack is None

    def test_create_fault(self):
        fault = create_fault("Quota exceeded", "QUOTA", 409, {"plan": "free"})
        assert isinstance(fault, AppFault)
        assert fault.status_code == 409
        assert fault.context == {"plan": "free"}

    def test_error_summary(self):
        assert get_error_summary(ApiFault("Bad gateway", 502)) == "Bad gateway [API_ERROR_502] (502)"
        assert get_error_summary("plain") == "plain"


class TestCatalog:
    """Tests for the error and success message catalogs."""

    def test_known_code(self):
        assert get_error_message("AUTH_001") == "Invalid credentials"
        assert is_valid_error_code("AUTH_001")

    def test_unknown_code_falls_back(self):
        assert get_error_message("NOPE_999") == ERROR_MESSAGES["DEFAULT"]
        assert get_error_message() == ERROR_MESSAGES["DEFAULT"]
        assert not is_valid_error_code("NOPE_999")
        assert not is_valid_error_code(None)

    def test_lookup_has_no_fallback(self):
        assert lookup_error_message("NOPE_999") is None
        assert lookup_error_message("NETWORK_ERROR") == ERROR_MESSAGES["NETWORK_ERROR"]

    def test_catalog_groups_present(self):
        for prefix in ("AUTH_", "USER_", "ROLE_", "PERM_", "VALIDATION_", "SYSTEM_"):
            assert any(code.startswith(prefix) for code in ERROR_MESSAGES), prefix
        for code in ("NETWORK_ERROR", "TIMEOUT_ERROR", "RATE_LIMIT_EXCEEDED", "DEFAULT", "UNKNOWN_ERROR"):
            assert code in ERROR_MESSAGES

    def test_success_messages(self):
        assert get_success_message("USER_CREATED") == "User created successfully"
        assert is_valid_success_key("LOGIN_SUCCESS")
        assert not is_valid_success_key("NOPE")
        with pytest.raises(KeyError):
            get_success_message("NOPE")
