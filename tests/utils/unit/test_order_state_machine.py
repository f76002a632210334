"""
Unit Tests: utils/order_state_machine.py
"""

import logging

import pytest

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.order import InvalidStateTransitionException
from utils.order_state_machine import OrderStateMachine, PaymentStateMachine


class TestOrderStateMachine:

    @pytest.mark.parametrize("from_status, to_status", [
        (OrderStatus.PENDING, OrderStatus.PROCESSING),
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
        (OrderStatus.PROCESSING, OrderStatus.COMPLETED),
        (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    ])
    def test_valid_transitions(self, from_status, to_status):
        assert OrderStateMachine.is_valid_transition(from_status, to_status)

    @pytest.mark.parametrize("from_status, to_status", [
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.PENDING),
        (OrderStatus.PENDING, OrderStatus.COMPLETED),
        (OrderStatus.PROCESSING, OrderStatus.PENDING),
        (OrderStatus.PENDING, OrderStatus.PENDING),
    ])
    def test_invalid_transitions(self, from_status, to_status):
        assert not OrderStateMachine.is_valid_transition(from_status, to_status)

    def test_final_statuses(self):
        assert OrderStateMachine.is_final_status(OrderStatus.COMPLETED)
        assert OrderStateMachine.is_final_status(OrderStatus.CANCELLED)
        assert not OrderStateMachine.is_final_status(OrderStatus.PENDING)
        assert OrderStateMachine.get_valid_transitions(OrderStatus.COMPLETED) == []

    def test_cancellable(self):
        assert OrderStateMachine.is_cancellable(OrderStatus.PENDING)
        assert OrderStateMachine.is_cancellable(OrderStatus.PROCESSING)
        assert not OrderStateMachine.is_cancellable(OrderStatus.COMPLETED)

    def test_validate_transition_logs_audit_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.order_state_machine"):
            OrderStateMachine.validate_transition(5, OrderStatus.PENDING, OrderStatus.CANCELLED, user_id=2)

        assert "ORDER_STATUS_TRANSITION: Order 5 pending -> cancelled by user 2" in caplog.text

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidStateTransitionException) as exc_info:
            OrderStateMachine.validate_transition(5, OrderStatus.COMPLETED, OrderStatus.CANCELLED)

        assert exc_info.value.entity == "order"
        assert exc_info.value.current_state == "completed"
        assert exc_info.value.target_state == "cancelled"


class TestPaymentStateMachine:

    def test_valid_transitions(self):
        assert PaymentStateMachine.is_valid_transition(PaymentStatus.PENDING, PaymentStatus.COMPLETED)
        assert PaymentStateMachine.is_valid_transition(PaymentStatus.PENDING, PaymentStatus.FAILED)
        assert PaymentStateMachine.is_valid_transition(PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)

    def test_failed_payment_cannot_be_refunded(self):
        with pytest.raises(InvalidStateTransitionException) as exc_info:
            PaymentStateMachine.validate_transition(1, PaymentStatus.FAILED, PaymentStatus.REFUNDED)

        assert exc_info.value.entity == "payment"

    def test_get_valid_transitions(self):
        assert PaymentStateMachine.get_valid_transitions(PaymentStatus.PENDING) == [
            PaymentStatus.COMPLETED, PaymentStatus.FAILED
        ]
