"""
Unit Tests for the Exception Hierarchies and Helpers
"""

import pytest

from clicker.core.exceptions import ConfigurationError, ErrorSeverity, SaveSlotError
from clicker.modules.shared.exceptions import (
    BatteryEmptyError,
    CatalogUnavailableError,
    InsufficientFundsError,
    get_error_severity,
    is_transient_error,
    should_alert,
)


@pytest.mark.unit
class TestExceptionHelpers:

    def test_insufficient_funds_details(self):
        exc = InsufficientFundsError(required=500, current=120, item="badge:tung")

        assert exc.to_dict()["details"]["deficit"] == 380
        assert exc.error_code == "INSUFFICIENT_FUNDS"
        assert str(exc).startswith("[INSUFFICIENT_FUNDS] Insufficient currency for badge:tung")

    @pytest.mark.parametrize(
        "exc, transient",
        [
            (SaveSlotError("redis", "write", "s", OSError("x")), True),
            (CatalogUnavailableError("http://x", "timeout"), True),
            (InsufficientFundsError(1, 0), False),
            (ValueError("plain"), False),
        ],
    )
    def test_is_transient_error(self, exc, transient):
        assert is_transient_error(exc) is transient

    def test_severity(self):
        assert get_error_severity(BatteryEmptyError(150)) is ErrorSeverity.DEBUG
        assert get_error_severity(RuntimeError("x")) is ErrorSeverity.ERROR

    def test_should_alert(self):
        assert should_alert(ConfigurationError("SAVE_BACKEND", "bad"))
        assert should_alert(SaveSlotError("file", "read", "s", OSError("x")))
        assert not should_alert(InsufficientFundsError(1, 0))
