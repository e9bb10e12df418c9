"""Approval chain state machine.

States are ``pending@<level>`` for every level of the chain, plus the terminal
``approved``, ``rejected`` and ``returned``.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import LeaveAction, LeaveStatus
from ..core.exceptions import InvalidTransitionError
from .model import LeaveRequest


@dataclass(frozen=True)
class Transition:
    status: LeaveStatus
    level: str

    @property
    def terminal(self) -> bool:
        return self.status != LeaveStatus.PENDING


def next_state(request: LeaveRequest, action: LeaveAction) -> Transition:
    if request.status != LeaveStatus.PENDING:
        raise InvalidTransitionError(
            f"Leave request {request.request_id} is already {request.status.value}"
        )

    flow = list(request.approval_flow)
    if not flow:
        raise InvalidTransitionError(f"Leave request {request.request_id} has no approval flow")

    level = request.current_approval_level or flow[0]
    if level not in flow:
        raise InvalidTransitionError(
            f"Approval level {level!r} is not part of the flow {flow}"
        )

    if action == LeaveAction.REJECT:
        return Transition(status=LeaveStatus.REJECTED, level=level)
    if action == LeaveAction.RETURN:
        return Transition(status=LeaveStatus.RETURNED, level=level)

    index = flow.index(level)
    if index == len(flow) - 1:
        return Transition(status=LeaveStatus.APPROVED, level=level)
    return Transition(status=LeaveStatus.PENDING, level=flow[index + 1])
