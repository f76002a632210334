"""
State machines for validating order and payment status transitions.

This module implements finite state machines to ensure valid status transitions
and provide audit logging for all status changes.
"""

import logging
from enum import Enum
from typing import Dict, List, Set

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.order import InvalidStateTransitionException

logger = logging.getLogger(__name__)


class StatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: Enum, to_status: Enum, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class StateMachine:
    """
    Transition table with validation and audit logging.

    Subclasses define ENTITY, VALID_TRANSITIONS and FINAL_STATUSES.
    Staying in the same status is not a transition and is rejected.
    """

    ENTITY: str = "entity"
    VALID_TRANSITIONS: List[StatusTransition] = []
    FINAL_STATUSES: Set[Enum] = set()

    @classmethod
    def _transition_map(cls) -> Dict[Enum, Set[Enum]]:
        transition_map: Dict[Enum, Set[Enum]] = {}
        for transition in cls.VALID_TRANSITIONS:
            transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
        return transition_map

    @classmethod
    def is_valid_transition(cls, from_status: Enum, to_status: Enum) -> bool:
        return to_status in cls._transition_map().get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: Enum) -> List[Enum]:
        return sorted(cls._transition_map().get(from_status, set()), key=lambda status: status.value)

    @classmethod
    def is_final_status(cls, status: Enum) -> bool:
        return status in cls.FINAL_STATUSES

    @classmethod
    def get_transition_description(cls, from_status: Enum, to_status: Enum) -> str:
        for transition in cls.VALID_TRANSITIONS:
            if transition.from_status == from_status and transition.to_status == to_status:
                return transition.description
        return f"Transition from {from_status.value} to {to_status.value}"

    @classmethod
    def validate_transition(cls, entity_id: int | None, from_status: Enum, to_status: Enum,
                            user_id: int | None = None) -> None:
        """
        Validate a status transition and create an audit log entry.

        Args:
            entity_id: ID of the order/payment being transitioned
            from_status: Current status
            to_status: Desired new status
            user_id: ID of user performing transition (None for system)

        Raises:
            InvalidStateTransitionException: If the transition is not allowed
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.warning(f"Invalid status transition for {cls.ENTITY} {entity_id}: "
                           f"{from_status.value} -> {to_status.value}")
            raise InvalidStateTransitionException(cls.ENTITY, entity_id, from_status.value, to_status.value)

        performer = f"user {user_id}" if user_id else "system"
        logger.info(f"{cls.ENTITY.upper()}_STATUS_TRANSITION: {cls.ENTITY.capitalize()} {entity_id} "
                    f"{from_status.value} -> {to_status.value} by {performer}: "
                    f"{cls.get_transition_description(from_status, to_status)}")


class OrderStateMachine(StateMachine):
    """
    Valid status transitions:
    - PENDING -> PROCESSING (payment completed)
    - PENDING -> CANCELLED (user cancels before payment)
    - PROCESSING -> COMPLETED (order fulfilled)
    - PROCESSING -> CANCELLED (user cancels, payment is refunded)

    COMPLETED and CANCELLED are final.
    """

    ENTITY = "order"
    VALID_TRANSITIONS = [
        StatusTransition(OrderStatus.PENDING, OrderStatus.PROCESSING,
                         description="Payment completed"),
        StatusTransition(OrderStatus.PENDING, OrderStatus.CANCELLED,
                         description="Order cancelled before payment"),
        StatusTransition(OrderStatus.PROCESSING, OrderStatus.COMPLETED,
                         description="Order fulfilled"),
        StatusTransition(OrderStatus.PROCESSING, OrderStatus.CANCELLED,
                         description="Paid order cancelled, stock restored"),
    ]
    FINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

    @classmethod
    def is_cancellable(cls, status: OrderStatus) -> bool:
        return cls.is_valid_transition(status, OrderStatus.CANCELLED)


class PaymentStateMachine(StateMachine):
    """
    Valid status transitions:
    - PENDING -> COMPLETED (gateway approved)
    - PENDING -> FAILED (gateway declined)
    - COMPLETED -> REFUNDED (order cancelled after payment)
    """

    ENTITY = "payment"
    VALID_TRANSITIONS = [
        StatusTransition(PaymentStatus.PENDING, PaymentStatus.COMPLETED,
                         description="Gateway approved the charge"),
        StatusTransition(PaymentStatus.PENDING, PaymentStatus.FAILED,
                         description="Gateway declined the charge"),
        StatusTransition(PaymentStatus.COMPLETED, PaymentStatus.REFUNDED,
                         description="Charge refunded"),
    ]
    FINAL_STATUSES = {PaymentStatus.FAILED, PaymentStatus.REFUNDED}
