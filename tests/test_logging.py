"""How workflow events render as JSON log lines."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from approval_kernel.domain.workflow import Family, State, Tier
from approval_kernel.exceptions import StaleStateError, ValidationError
from approval_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture
def lines():
    """Install a fresh JSON handler; yield a reader of the emitted records."""
    reset_logging()
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)

    def read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield read
    reset_logging()


logger = get_logger("services.transition")


class TestWorkflowEvents:

    def test_transition_event(self, lines):
        doc_id = uuid4()
        logger.info(
            "workflow_transition",
            extra={
                "document_id": doc_id,
                "action": "central_approve",
                "from_state": State.CENTRAL_PENDING,
                "to_state": State.FINALIZED,
                "version": 4,
                "ledger_created": True,
            },
        )

        (record,) = lines()
        assert record["message"] == "workflow_transition"
        assert record["logger"] == "approval_kernel.services.transition"
        assert record["level"] == "INFO"
        assert record["document_id"] == str(doc_id)
        assert record["from_state"] == "central_pending"
        assert record["transition"] == "central_pending->finalized"
        assert record["ledger_created"] is True
        assert record["ts"].endswith("+00:00")

    def test_no_transition_label_without_both_states(self, lines):
        logger.info("workflow_transition_noop", extra={"state": "paid", "action": "pay"})
        (record,) = lines()
        assert "transition" not in record

    def test_ledger_amount_keeps_its_digits(self, lines):
        get_logger("services.ledger").info(
            "ledger_effect_applied", extra={"amount": Decimal("2000000.50"), "family": Family.PAYROLL_RUN},
        )
        (record,) = lines()
        assert record["amount"] == "2000000.50"
        assert record["family"] == "payroll_run"

    def test_events_below_the_level_are_dropped(self):
        reset_logging()
        stream = StringIO()
        configure_logging(level=logging.INFO, stream=stream)
        try:
            get_logger("db.engine").debug("transaction_started")
            get_logger("db.engine").info("engine_initialized")
        finally:
            reset_logging()
        assert [json.loads(line)["message"] for line in stream.getvalue().splitlines()] == [
            "engine_initialized"
        ]


class TestFailures:

    def test_stale_conflict_carries_the_expected_position(self, lines):
        try:
            raise StaleStateError("doc-1", "central_pending", 3)
        except StaleStateError:
            logger.info("stale_state_conflict", exc_info=True)

        (record,) = lines()
        error = record["error"]
        assert error["type"] == "StaleStateError"
        assert error["code"] == "STALE_STATE"
        assert error["detail"] == {
            "document_id": "doc-1",
            "expected_state": "central_pending",
            "expected_version": 3,
        }
        assert "Traceback" in record["traceback"]

    def test_validation_errors_list_every_field(self, lines):
        try:
            raise ValidationError([("amount", "must be positive"), ("reason", "must not be empty")])
        except ValidationError:
            logger.exception("submission_rejected")

        error = lines()[0]["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert error["detail"]["errors"] == [["amount", "must be positive"], ["reason", "must not be empty"]]

    def test_foreign_exception_has_no_workflow_code(self, lines):
        try:
            raise RuntimeError("mail server unreachable")
        except RuntimeError:
            get_logger("services.workflow").exception("notification_failed", extra={"notification": "advanced"})

        (record,) = lines()
        assert record["level"] == "ERROR"
        assert record["notification"] == "advanced"
        assert record["error"] == {"type": "RuntimeError", "message": "mail server unreachable"}


class TestCallContext:

    def test_bound_call_fields_appear_on_every_event(self, lines):
        with LogContext.bind(correlation_id="c-1", actor_id="central.ops", actor_tier=Tier.CENTRAL):
            logger.info("workflow_transition")
            logger.info("ledger_effect_applied")
        logger.info("after_call")

        first, second, after = lines()
        assert first["actor_tier"] == "central"
        assert second["correlation_id"] == "c-1"
        assert "correlation_id" not in after

    def test_call_fields_win_over_event_fields(self, lines):
        with LogContext.bind(document_id="from-call"):
            logger.info("workflow_transition", extra={"document_id": "from-event"})
        assert lines()[0]["document_id"] == "from-call"

    def test_nested_bind_restores_outer_call(self):
        with LogContext.bind(correlation_id="outer", family="invoice"):
            with LogContext.bind(correlation_id="inner", document_id=None):
                assert LogContext.get_all() == {"correlation_id": "inner", "family": "invoice"}
            assert LogContext.get_all() == {"correlation_id": "outer", "family": "invoice"}
        assert LogContext.get_all() == {}

    def test_unknown_field_is_refused(self):
        with pytest.raises(TypeError):
            LogContext.set(trace_id="t-1")

    def test_values_are_stored_as_text(self):
        doc_id = uuid4()
        LogContext.set(document_id=doc_id, family=Family.INVOICE)
        assert LogContext.get_all() == {"document_id": str(doc_id), "family": "invoice"}
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestConfiguration:

    def test_second_configuration_keeps_the_first_handler(self, lines):
        configure_logging(level=logging.ERROR, stream=StringIO())
        root = logging.getLogger("approval_kernel")
        assert len([h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]) == 1
        assert root.level == logging.DEBUG

    def test_reset_removes_the_handler(self, lines):
        reset_logging()
        root = logging.getLogger("approval_kernel")
        assert not [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
