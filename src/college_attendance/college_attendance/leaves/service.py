from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..common.datetime_utils import inclusive_day_count, now_utc, parse_iso_date
from ..common.soft_failures import SoftFailureLog
from ..common.validators import require_non_empty
from ..core.enums import LeaveAction, LeaveStatus, NotificationCategory, NotificationType, Priority
from ..core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from ..mirror.store import FlatMirrorStore
from ..notifications.service import NotificationService
from ..partitions.keys import Scope
from ..partitions.store import PartitionedRecordStore
from ..partitions.range_query import RangeQueryEngine
from .model import LeaveRequest, NewLeaveRequest, parse_leave_status
from .workflow import Transition, next_state

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

_STATUS_TO_ACTION = {
    LeaveStatus.APPROVED: LeaveAction.APPROVE,
    LeaveStatus.REJECTED: LeaveAction.REJECT,
    LeaveStatus.RETURNED: LeaveAction.RETURN,
}


def _newest_first(items: list[LeaveRequest]) -> list[LeaveRequest]:
    return sorted(items, key=lambda r: r.created_at or _EPOCH, reverse=True)


def build_status_notification(
    request: LeaveRequest,
    action: LeaveAction,
    transition: Transition,
    *,
    approver_id: Optional[str],
    remarks: Optional[str],
) -> dict[str, Any]:
    """Notification payload for the requester after a status transition."""
    if transition.status == LeaveStatus.APPROVED:
        title, verb, kind = "Leave Request Approved", "approved", NotificationType.SUCCESS
    elif transition.status == LeaveStatus.REJECTED:
        title, verb, kind = "Leave Request Rejected", "rejected", NotificationType.ERROR
    elif transition.status == LeaveStatus.RETURNED:
        title, verb, kind = "Leave Request Returned", "returned", NotificationType.WARNING
    else:
        title = "Leave Request Forwarded"
        verb = f"approved at {request.current_approval_level} level and forwarded to {transition.level}"
        kind = NotificationType.INFO

    message = f"Your {request.leave_type.value} leave request has been {verb}"
    if remarks:
        message = f"{message}: {remarks}"

    details: dict[str, Any] = {
        "leaveId": request.request_id,
        "leaveType": request.leave_type.value,
        "fromDate": request.from_date.isoformat(),
        "toDate": request.to_date.isoformat(),
        "reason": request.reason,
        "status": transition.status.value,
        "approvedBy": approver_id if action == LeaveAction.APPROVE else request.approved_by,
        "approvalLevel": transition.level,
        "approvalFlow": list(request.approval_flow),
        "daysCount": request.days_count,
    }
    if remarks or request.remarks:
        details["remarks"] = remarks or request.remarks

    return {
        "user_id": request.user_id,
        "title": title,
        "message": message,
        "type": kind,
        "category": NotificationCategory.LEAVE,
        "priority": Priority.HIGH,
        "action_required": transition.status == LeaveStatus.RETURNED,
        "details": {k: v for k, v in details.items() if v is not None},
    }


class LeaveService:
    def __init__(
        self,
        requests: FlatMirrorStore,
        partitions: PartitionedRecordStore,
        engine: RangeQueryEngine,
        notifications: NotificationService,
        teachers: Optional[FlatMirrorStore] = None,
        *,
        approval_flow: Iterable[str],
        soft_failures: SoftFailureLog,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._requests = requests
        self._partitions = partitions
        self._engine = engine
        self._notifications = notifications
        self._teachers = teachers
        self._approval_flow = tuple(approval_flow)
        self._soft_failures = soft_failures
        self._clock = clock

    def _decode(self, docs: Iterable[dict[str, Any]]) -> list[LeaveRequest]:
        out: list[LeaveRequest] = []
        for doc in docs:
            try:
                out.append(LeaveRequest.from_document(doc, default_flow=self._approval_flow))
            except ValidationError as e:
                logger.warning("Skipping malformed leave document %s: %s", doc.get("id"), e)
        return out

    async def create_leave_request(self, new: NewLeaveRequest) -> str:
        """Store a pending request at the first level of its approval chain.

        The flat write is the source of truth; the hierarchical copy, approver
        assignment and the approver's notification are best-effort.
        """
        user_id = require_non_empty(new.user_id, "User")
        reason = require_non_empty(new.reason, "Reason")
        if new.to_date < new.from_date:
            raise ValidationError("To date must be on or after from date")

        flow = tuple(new.approval_flow) or self._approval_flow
        if not flow:
            raise ValidationError("Approval flow cannot be empty")

        days_count = new.days_count if new.days_count is not None else inclusive_day_count(new.from_date, new.to_date)
        if days_count <= 0:
            raise ValidationError("Day count must be positive")

        now = self._clock()
        request = LeaveRequest(
            request_id="",
            user_id=user_id,
            user_name=new.user_name or "",
            department=(new.department or "").strip(),
            leave_type=new.leave_type,
            from_date=new.from_date,
            to_date=new.to_date,
            days_count=int(days_count),
            reason=reason,
            status=LeaveStatus.PENDING,
            current_approval_level=flow[0],
            approval_flow=flow,
            submitted_at=now,
            created_at=now,
            updated_at=now,
            roll_number=new.roll_number,
            year=new.year,
            sem=new.sem,
            div=new.div,
            subject=new.subject,
            reapplied_from=new.reapplied_from,
        )

        request_id = await self._requests.add(request.to_document())
        request = replace(request, request_id=request_id)
        logger.info("Leave request %s created for %s (%s)", request_id, user_id, flow[0])

        await self._mirror_create(request)
        await self._assign_approver(request)
        return request_id

    async def _mirror_create(self, request: LeaveRequest) -> None:
        scope = request.mirror_scope
        if scope is None:
            logger.debug("Leave %s has no class scope; skipping hierarchical copy", request.request_id)
            return
        try:
            await self._partitions.write(
                scope, request.request_id, request.from_date, {**request.to_document(), "id": request.request_id}
            )
        except Exception as e:
            self._soft_failures.record("leave.mirror_create", e, request_id=request.request_id)

    async def _assign_approver(self, request: LeaveRequest) -> None:
        if self._teachers is None or not request.department:
            return
        try:
            faculty = await self._teachers.query(department=request.department)
            head = next((f for f in faculty if f.get("isDepartmentHead")), None)
            assignee = head or (faculty[0] if faculty else None)
            if assignee is None:
                logger.info("No faculty found in %s for leave %s", request.department, request.request_id)
                return

            assigned_to = {
                "id": assignee["id"],
                "name": assignee.get("name", ""),
                "email": assignee.get("email", ""),
                "role": "Department Head" if assignee.get("isDepartmentHead") else "Faculty",
            }
            await self._requests.update(request.request_id, {"assignedTo": assigned_to})
            await self._notifications.create_notification(
                user_id=assigned_to["id"],
                title="New Leave Request",
                message=(
                    f"New leave request from {request.user_name or 'Student'} "
                    f"({request.roll_number or request.user_id}) in {request.department} department"
                ),
                type=NotificationType.INFO,
                category=NotificationCategory.LEAVE,
                priority=Priority.MEDIUM,
                action_required=True,
                details={
                    "leaveId": request.request_id,
                    "studentId": request.user_id,
                    "fromDate": request.from_date.isoformat(),
                    "toDate": request.to_date.isoformat(),
                    "reason": request.reason,
                },
            )
        except Exception as e:
            self._soft_failures.record("leave.assign_approver", e, request_id=request.request_id)

    async def get_leave_request(self, request_id: str) -> LeaveRequest:
        doc = await self._requests.get(request_id)
        if doc is None:
            raise NotFoundError(f"Leave request {request_id} not found")
        return LeaveRequest.from_document(doc, default_flow=self._approval_flow)

    async def apply_action(
        self,
        request_id: str,
        action: LeaveAction,
        *,
        approver_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> LeaveRequest:
        request = await self.get_leave_request(request_id)
        transition = next_state(request, action)

        now = self._clock()
        update: dict[str, Any] = {
            "status": transition.status.value,
            "currentApprovalLevel": transition.level,
            "updatedAt": now,
        }
        remarks = (remarks or "").strip() or None
        if remarks:
            update["remarks"] = remarks
        if action == LeaveAction.APPROVE and approver_id:
            update["approvedBy"] = approver_id
            update["approvedAt"] = now

        await self._requests.update(request_id, update)
        logger.info(
            "Leave %s: %s@%s -> %s@%s",
            request_id, request.status.value, request.current_approval_level,
            transition.status.value, transition.level,
        )

        scope = request.mirror_scope
        if scope is not None:
            try:
                await self._partitions.update(scope, request.from_date, request_id, update)
            except Exception as e:
                self._soft_failures.record("leave.mirror_update", e, request_id=request_id)

        try:
            await self._notifications.create_notification(
                **build_status_notification(request, action, transition, approver_id=approver_id, remarks=remarks)
            )
        except Exception as e:
            self._soft_failures.record("leave.notification", e, request_id=request_id)

        return replace(
            request,
            status=transition.status,
            current_approval_level=transition.level,
            updated_at=now,
            remarks=remarks or request.remarks,
            approved_by=update.get("approvedBy", request.approved_by),
            approved_at=update.get("approvedAt", request.approved_at),
        )

    async def update_leave_request_status(
        self,
        request_id: str,
        status: LeaveStatus | str,
        approved_by: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> LeaveRequest:
        """``approved`` advances one level (or finishes the chain); ``rejected``/``returned`` end it."""
        target = parse_leave_status(status)
        action = _STATUS_TO_ACTION.get(target)
        if action is None:
            raise ValidationError(f"Cannot set leave status to {target.value}")
        return await self.apply_action(request_id, action, approver_id=approved_by, remarks=comments)

    async def approve(self, request_id: str, approver_id: str, remarks: Optional[str] = None) -> LeaveRequest:
        return await self.apply_action(request_id, LeaveAction.APPROVE, approver_id=approver_id, remarks=remarks)

    async def reject(self, request_id: str, approver_id: str, remarks: Optional[str] = None) -> LeaveRequest:
        return await self.apply_action(request_id, LeaveAction.REJECT, approver_id=approver_id, remarks=remarks)

    async def return_for_changes(self, request_id: str, approver_id: str, remarks: Optional[str] = None) -> LeaveRequest:
        return await self.apply_action(request_id, LeaveAction.RETURN, approver_id=approver_id, remarks=remarks)

    async def reapply(self, original_id: str, **changes: Any) -> str:
        """Submit a fresh request based on a rejected/returned one; the original is untouched."""
        original = await self.get_leave_request(original_id)
        if original.status not in {LeaveStatus.REJECTED, LeaveStatus.RETURNED}:
            raise InvalidTransitionError(
                f"Only rejected or returned requests can be resubmitted (is {original.status.value})"
            )

        base = NewLeaveRequest(
            user_id=original.user_id,
            user_name=original.user_name,
            leave_type=original.leave_type,
            from_date=original.from_date,
            to_date=original.to_date,
            reason=original.reason,
            department=original.department,
            approval_flow=original.approval_flow,
            roll_number=original.roll_number,
            year=original.year,
            sem=original.sem,
            div=original.div,
            subject=original.subject,
            reapplied_from=original.request_id,
        )
        try:
            new = replace(base, **changes)
        except TypeError as e:
            raise ValidationError(f"Unknown leave field: {e}")
        return await self.create_leave_request(replace(new, reapplied_from=original.request_id))

    async def get_leave_requests_by_user(self, user_id: str) -> list[LeaveRequest]:
        return _newest_first(self._decode(await self._requests.query_by_user(user_id)))

    async def get_pending_leave_requests(self) -> list[LeaveRequest]:
        return _newest_first(self._decode(await self._requests.query(status=LeaveStatus.PENDING.value)))

    async def get_leave_requests_for_level(self, level: str) -> list[LeaveRequest]:
        """Pending requests currently waiting at ``level`` (e.g. ``"HOD"``)."""
        return [r for r in await self.get_pending_leave_requests() if r.current_approval_level == level]

    async def get_leave_requests_assigned_to(self, faculty_id: str) -> list[LeaveRequest]:
        return _newest_first(self._decode(await self._requests.query_where({"assignedTo.id": faculty_id})))

    async def get_class_leaves_by_date(self, scope: Scope, day: date | str) -> list[LeaveRequest]:
        return self._decode(await self._partitions.read_day(scope, parse_iso_date(day)))

    async def get_class_leaves_by_month(self, scope: Scope, month: int | str, year_for_month: int | str) -> list[LeaveRequest]:
        y, m = int(year_for_month), int(month)
        if not 1 <= m <= 12:
            raise ValidationError(f"Invalid month: {month!r}")
        last = calendar.monthrange(y, m)[1]
        docs = await self._engine.query_range(scope, date(y, m, 1), date(y, m, last))
        logger.info("Found %d leave records for %s/%04d-%02d", len(docs), scope.subject, y, m)
        return self._decode(docs)

    async def purge_leave_request(self, request_id: str) -> bool:
        """Administrative delete of the flat record and its hierarchical copy."""
        request = await self.get_leave_request(request_id)
        removed = await self._requests.delete(request_id)
        scope = request.mirror_scope
        if scope is not None:
            try:
                await self._partitions.delete(scope, request.from_date, request_id)
            except Exception as e:
                self._soft_failures.record("leave.mirror_delete", e, request_id=request_id)
        return removed
