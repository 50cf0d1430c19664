"""Unit tests for NotificationDispatcher.

Tests cover:
- Template resolution misses and empty recipient sets
- Concurrent fan-out with partial failure
- Batch-level configuration errors
- Invalid input
- Health checks
"""

import threading
from decimal import Decimal

import pytest
import structlog
from unittest.mock import MagicMock

from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.exceptions import (
    ChannelConfigurationError,
    InvalidEventError,
    UnknownTemplateError,
)
from infrastructure.notifications.models import TemplateKind
from infrastructure.notifications.recipients import PreferenceStore
from infrastructure.operations import OperationResult


@pytest.fixture
def three_subscribers(preference_store_factory, subscriber_factory):
    return preference_store_factory(
        subscriber_factory(user_id="1", flags=["stage_drafting"], primary_phone="0412345671"),
        subscriber_factory(user_id="2", flags=["stage_drafting"], primary_phone="0412345672"),
        subscriber_factory(user_id="3", flags=["stage_drafting"], primary_phone="0412345673"),
    )


@pytest.mark.unit
class TestNotificationDispatcherInitialization:
    def test_requires_a_recipient_source(self, mock_channel):
        with pytest.raises(ValueError):
            NotificationDispatcher(channel=mock_channel)

    def test_rejects_zero_workers(self, mock_channel, preference_store_factory):
        with pytest.raises(ValueError):
            NotificationDispatcher(
                channel=mock_channel,
                preference_store=preference_store_factory(),
                max_workers=0,
            )


@pytest.mark.unit
class TestNotificationDispatcherNothingToDo:
    def test_unknown_kind_sends_nothing(self, mock_channel, three_subscribers, event_factory):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(event_factory("invoice_paid", stage_name="Drafting"))

        assert (result.attempted, result.sent, result.failed) == (0, 0, 0)
        assert result.template_kind is None
        mock_channel.send.assert_not_called()

    def test_unknown_stage_sends_nothing(self, mock_channel, three_subscribers, event_factory):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(event_factory("stage_update", stage_name="Painting"))

        assert result.attempted == 0
        assert result.template_kind is TemplateKind.STAGE_COMPLETED
        assert result.gating_field is None
        mock_channel.send.assert_not_called()

    def test_no_subscribers_sends_nothing(self, mock_channel, preference_store_factory, stage_event):
        dispatcher = NotificationDispatcher(
            mock_channel, preference_store=preference_store_factory()
        )

        result = dispatcher.dispatch(stage_event)

        assert result.attempted == 0
        assert result.gating_field == "stage_drafting"
        assert result.is_success
        mock_channel.send.assert_not_called()

    def test_no_subscribers_does_not_need_credentials(
        self, mock_channel, preference_store_factory, stage_event
    ):
        mock_channel.ensure_configured.side_effect = ChannelConfigurationError("missing")
        dispatcher = NotificationDispatcher(
            mock_channel, preference_store=preference_store_factory()
        )

        result = dispatcher.dispatch(stage_event)

        assert result.attempted == 0

    def test_store_failure_is_reported_as_no_recipients(self, mock_channel, stage_event):
        store = MagicMock(spec=PreferenceStore)
        store.find_users_with_flag.side_effect = RuntimeError("database unavailable")
        dispatcher = NotificationDispatcher(mock_channel, preference_store=store)

        result = dispatcher.dispatch(stage_event)

        assert (result.attempted, result.sent, result.failed) == (0, 0, 0)
        assert "database unavailable" in result.message
        mock_channel.send.assert_not_called()


@pytest.mark.unit
class TestNotificationDispatcherFanOut:
    def test_all_recipients_succeed(self, mock_channel, three_subscribers, stage_event):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(stage_event)

        assert (result.attempted, result.sent, result.failed) == (3, 3, 0)
        assert result.template_kind is TemplateKind.STAGE_COMPLETED
        assert result.gating_field == "stage_drafting"
        assert mock_channel.send.call_count == 3

    def test_every_recipient_gets_the_same_parameters(
        self, mock_channel, three_subscribers, stage_event
    ):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        dispatcher.dispatch(stage_event)

        addresses = sorted(call.args[0] for call in mock_channel.send.call_args_list)
        assert addresses == ["61412345671", "61412345672", "61412345673"]
        for call in mock_channel.send.call_args_list:
            assert call.args[1] is TemplateKind.STAGE_COMPLETED
            assert call.args[2] == [
                "Smith Residence",
                "Jane Smith",
                "LOT-12",
                "Drafting",
                "DONE",
            ]

    def test_one_failed_result_does_not_affect_others(
        self, mock_channel, three_subscribers, stage_event
    ):
        def send(address, template_kind, parameters):
            if address == "61412345672":
                return OperationResult.transient_error(
                    "Messaging API timed out", error_code="TIMEOUT"
                )
            return OperationResult.success()

        mock_channel.send.side_effect = send
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(stage_event)

        assert (result.attempted, result.sent, result.failed) == (3, 2, 1)
        error = result.per_recipient_errors[0]
        assert error.user_id == "2"
        assert error.address == "61412345672"
        assert error.error_code == "TIMEOUT"
        assert not result.is_success

    def test_channel_exception_is_counted_as_failure(
        self, mock_channel, three_subscribers, stage_event
    ):
        def send(address, template_kind, parameters):
            if address == "61412345672":
                raise RuntimeError("socket closed")
            return OperationResult.success()

        mock_channel.send.side_effect = send
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(stage_event)

        assert (result.attempted, result.sent, result.failed) == (3, 2, 1)
        assert result.per_recipient_errors[0].error_code == "CHANNEL_EXCEPTION"
        assert "socket closed" in result.per_recipient_errors[0].reason

    def test_failures_are_reported_in_recipient_order(
        self, mock_channel, three_subscribers, stage_event
    ):
        mock_channel.send.return_value = OperationResult.permanent_error("rejected")
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(stage_event)

        assert [e.user_id for e in result.per_recipient_errors] == ["1", "2", "3"]

    def test_channel_returning_nothing_counts_as_sent(
        self, mock_channel, three_subscribers, stage_event
    ):
        mock_channel.send.return_value = None
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(stage_event)

        assert result.sent == 3

    def test_sends_run_concurrently(self, mock_channel, three_subscribers, stage_event):
        barrier = threading.Barrier(3, timeout=5)

        def send(address, template_kind, parameters):
            barrier.wait()
            return OperationResult.success()

        mock_channel.send.side_effect = send
        dispatcher = NotificationDispatcher(
            mock_channel, preference_store=three_subscribers, max_workers=3
        )

        result = dispatcher.dispatch(stage_event)

        assert result.sent == 3

    def test_worker_threads_share_dispatch_context(
        self, mock_channel, three_subscribers, stage_event
    ):
        seen = []

        def send(address, template_kind, parameters):
            seen.append(structlog.contextvars.get_contextvars().get("dispatch_id"))
            return OperationResult.success()

        mock_channel.send.side_effect = send
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        dispatcher.dispatch(stage_event)

        assert len(seen) == 3
        assert seen[0] is not None
        assert len(set(seen)) == 1
        assert "dispatch_id" not in structlog.contextvars.get_contextvars()

    def test_secondary_phone_receives_its_own_message(
        self, mock_channel, preference_store_factory, subscriber_factory, stage_event
    ):
        store = preference_store_factory(
            subscriber_factory(
                user_id="1",
                flags=["stage_drafting"],
                primary_phone="0412345671",
                secondary_phone="0412345672",
            )
        )
        dispatcher = NotificationDispatcher(mock_channel, preference_store=store)

        result = dispatcher.dispatch(stage_event)

        assert result.attempted == 2

    def test_materials_ordered_uses_ordered_flag(
        self, mock_channel, preference_store_factory, subscriber_factory, event_factory
    ):
        store = preference_store_factory(
            subscriber_factory(user_id="1", flags=["material_to_order"], primary_phone="0412345671"),
            subscriber_factory(
                user_id="2", flags=["material_to_order_ordered"], primary_phone="0412345672"
            ),
        )
        dispatcher = NotificationDispatcher(mock_channel, preference_store=store)

        result = dispatcher.dispatch(event_factory("material_to_order", status="Acme Ordered"))

        assert result.gating_field == "material_to_order_ordered"
        assert result.attempted == 1
        assert mock_channel.send.call_args.args[0] == "61412345672"


@pytest.mark.unit
class TestNotificationDispatcherErrors:
    def test_missing_credentials_raise_once_for_the_batch(
        self, mock_channel, three_subscribers, stage_event
    ):
        mock_channel.ensure_configured.side_effect = ChannelConfigurationError(
            "WHATSAPP_ACCESS_TOKEN is missing"
        )
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        with pytest.raises(ChannelConfigurationError):
            dispatcher.dispatch(stage_event)

        mock_channel.send.assert_not_called()

    @pytest.mark.parametrize("event", ["stage done", 42, None])
    def test_invalid_event_raises(self, mock_channel, three_subscribers, event):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        with pytest.raises(InvalidEventError):
            dispatcher.dispatch(event)

        mock_channel.send.assert_not_called()

    def test_unknown_explicit_template_raises(self, mock_channel, three_subscribers, stage_event):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        with pytest.raises(UnknownTemplateError):
            dispatcher.dispatch(stage_event, template="weekly_digest")

    def test_record_input_is_accepted(self, mock_channel, three_subscribers):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(
            {"type": "stage_update", "stageName": "Drafting", "status": "DONE"}
        )

        assert result.sent == 3

    def test_record_with_camel_case_explicit_template(self, mock_channel, three_subscribers):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        result = dispatcher.dispatch(
            {"explicitTemplate": "stage-completed", "stageName": "Drafting", "status": "DONE"}
        )

        assert result.template_kind is TemplateKind.STAGE_COMPLETED
        assert result.sent == 3

    @pytest.mark.parametrize("amount", [Decimal("NaN"), 10**5000], ids=["nan", "huge_int"])
    def test_unusable_amount_still_dispatches(
        self, mock_channel, preference_store_factory, subscriber_factory, amount
    ):
        store = preference_store_factory(
            subscriber_factory(user_id="1", flags=["supplier_statements"], primary_phone="0412345671")
        )
        dispatcher = NotificationDispatcher(mock_channel, preference_store=store)

        result = dispatcher.dispatch(
            {"kind": "supplier_statement", "supplier": "Acme", "amount": amount}
        )

        assert (result.attempted, result.sent, result.failed) == (1, 1, 0)


@pytest.mark.unit
class TestNotificationDispatcherHealthCheck:
    def test_healthy_channel(self, mock_channel, three_subscribers):
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        assert dispatcher.health_check() == {"whatsapp": True}

    def test_unhealthy_channel(self, mock_channel, three_subscribers):
        mock_channel.health_check.return_value = OperationResult.permanent_error(
            "missing", error_code="NOT_CONFIGURED"
        )
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        assert dispatcher.health_check() == {"whatsapp": False}

    def test_health_check_exception(self, mock_channel, three_subscribers):
        mock_channel.health_check.side_effect = RuntimeError("boom")
        dispatcher = NotificationDispatcher(mock_channel, preference_store=three_subscribers)

        assert dispatcher.health_check() == {"whatsapp": False}
