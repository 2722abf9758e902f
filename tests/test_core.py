"""
Severity taxonomy (faults/core.py)
"""

import logging

import pytest

from faultline.faults.core import (
    ESCALATING_LEVELS,
    FATAL_LEVELS,
    NOTICE,
    SHUTDOWN_FATAL_LEVELS,
    ErrorLevel,
    level_name,
    log_level_for,
    severity_name,
)


# ============================================================================
# ErrorLevel
# ============================================================================

class TestErrorLevel:

    def test_bit_values(self):
        assert ErrorLevel.ERROR == 1
        assert ErrorLevel.WARNING == 2
        assert ErrorLevel.USER_ERROR == 256
        assert ErrorLevel.USER_DEPRECATED == 16384
        assert ErrorLevel.ALL == 32767

    def test_parse_int(self):
        assert ErrorLevel.parse(3) == ErrorLevel.ERROR | ErrorLevel.WARNING

    def test_parse_numeric_string(self):
        assert ErrorLevel.parse("8") == ErrorLevel.NOTICE

    def test_parse_names(self):
        assert ErrorLevel.parse("error|warning") == ErrorLevel.ERROR | ErrorLevel.WARNING
        assert ErrorLevel.parse("E_NOTICE") == ErrorLevel.NOTICE

    def test_parse_negation(self):
        mask = ErrorLevel.parse("ALL|~DEPRECATED|~USER_DEPRECATED")
        assert not mask & ErrorLevel.DEPRECATED
        assert not mask & ErrorLevel.USER_DEPRECATED
        assert mask & ErrorLevel.WARNING

    def test_parse_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown error level"):
            ErrorLevel.parse("ALL|BOGUS")

    def test_parse_rejects_bool(self):
        with pytest.raises(ValueError):
            ErrorLevel.parse(True)


# ============================================================================
# Severity sets
# ============================================================================

class TestSeveritySets:

    def test_user_error_escalates_but_is_not_a_shutdown_fatal(self):
        assert ErrorLevel.USER_ERROR in ESCALATING_LEVELS
        assert ErrorLevel.USER_ERROR not in SHUTDOWN_FATAL_LEVELS

    def test_parse_is_a_shutdown_fatal_only(self):
        assert ErrorLevel.PARSE in SHUTDOWN_FATAL_LEVELS
        assert ErrorLevel.PARSE not in ESCALATING_LEVELS

    def test_fatal_levels(self):
        assert ErrorLevel.RECOVERABLE_ERROR in FATAL_LEVELS
        assert ErrorLevel.WARNING not in FATAL_LEVELS


# ============================================================================
# Names and log levels
# ============================================================================

class TestNames:

    @pytest.mark.parametrize("level,expected", [
        (ErrorLevel.ERROR, logging.ERROR),
        (ErrorLevel.USER_ERROR, logging.ERROR),
        (ErrorLevel.WARNING, logging.WARNING),
        (ErrorLevel.USER_WARNING, logging.WARNING),
        (ErrorLevel.NOTICE, NOTICE),
        (ErrorLevel.USER_NOTICE, NOTICE),
        (ErrorLevel.DEPRECATED, logging.INFO),
        (ErrorLevel.STRICT, logging.DEBUG),
    ])
    def test_log_level_for(self, level, expected):
        assert log_level_for(level) == expected

    def test_notice_level_registered(self):
        assert logging.getLevelName(NOTICE) == "NOTICE"

    def test_level_name(self):
        assert level_name(ErrorLevel.USER_WARNING) == "USER_WARNING"
        assert level_name(3) == "UNKNOWN"

    def test_severity_name(self):
        assert severity_name(ErrorLevel.ERROR) == "Fatal Error"
        assert severity_name(ErrorLevel.PARSE) == "Parse Error"
        assert severity_name(99999) == "Unknown Error"
