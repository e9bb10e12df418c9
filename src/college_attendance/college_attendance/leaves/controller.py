from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request

from ..common.async_runner import AsyncRunner
from ..common.datetime_utils import parse_iso_date
from ..common.serialization import jsonable
from ..common.validators import require_non_empty
from ..container import Container
from ..partitions.keys import Scope
from .model import LeaveRequest, NewLeaveRequest, parse_leave_type


def _leave_json(r: LeaveRequest) -> dict:
    return jsonable({"id": r.request_id, **r.to_document()})


def _optional(body: dict, key: str) -> Any:
    value = body.get(key)
    if value is None:
        return None
    return str(value).strip() or None


def register(app: Flask, container: Container, runner: AsyncRunner) -> None:
    service = container.leave_service

    @app.route("/api/leaves", methods=["POST"], endpoint="create_leave_request")
    def create_leave_request():
        body = request.get_json(force=True) or {}
        days_count = body.get("daysCount")
        new = NewLeaveRequest(
            user_id=require_non_empty(str(body.get("userId") or ""), "userId"),
            user_name=str(body.get("userName") or ""),
            leave_type=parse_leave_type(body.get("leaveType")),
            from_date=parse_iso_date(body.get("fromDate") or ""),
            to_date=parse_iso_date(body.get("toDate") or ""),
            reason=str(body.get("reason") or ""),
            department=str(body.get("department") or ""),
            days_count=int(days_count) if days_count is not None else None,
            approval_flow=tuple(body.get("approvalFlow") or ()),
            roll_number=_optional(body, "rollNumber"),
            year=_optional(body, "year"),
            sem=_optional(body, "sem"),
            div=_optional(body, "div"),
            subject=_optional(body, "subject"),
        )
        request_id = runner.run(service.create_leave_request(new))
        return jsonify({"id": request_id}), 201

    @app.route("/api/leaves/<request_id>", methods=["GET"], endpoint="get_leave_request")
    def get_leave_request(request_id: str):
        return jsonify(_leave_json(runner.run(service.get_leave_request(request_id))))

    @app.route("/api/leaves/users/<user_id>", methods=["GET"], endpoint="leaves_by_user")
    def leaves_by_user(user_id: str):
        return jsonify([_leave_json(r) for r in runner.run(service.get_leave_requests_by_user(user_id))])

    @app.route("/api/leaves/pending", methods=["GET"], endpoint="pending_leaves")
    def pending_leaves():
        level = request.args.get("level")
        if level:
            items = runner.run(service.get_leave_requests_for_level(level))
        else:
            items = runner.run(service.get_pending_leave_requests())
        return jsonify([_leave_json(r) for r in items])

    @app.route("/api/leaves/<request_id>/status", methods=["POST"], endpoint="update_leave_status")
    def update_leave_status(request_id: str):
        body = request.get_json(force=True) or {}
        updated = runner.run(
            service.update_leave_request_status(
                request_id,
                body.get("status") or "",
                approved_by=_optional(body, "approvedBy"),
                comments=_optional(body, "comments"),
            )
        )
        return jsonify(_leave_json(updated))

    @app.route("/api/leaves/<request_id>/reapply", methods=["POST"], endpoint="reapply_leave")
    def reapply_leave(request_id: str):
        body = request.get_json(force=True) or {}
        changes: dict[str, Any] = {}
        if body.get("fromDate"):
            changes["from_date"] = parse_iso_date(body["fromDate"])
        if body.get("toDate"):
            changes["to_date"] = parse_iso_date(body["toDate"])
        if body.get("reason"):
            changes["reason"] = str(body["reason"])
        if body.get("leaveType"):
            changes["leave_type"] = parse_leave_type(body["leaveType"])
        new_id = runner.run(service.reapply(request_id, **changes))
        return jsonify({"id": new_id}), 201

    @app.route("/api/leaves/class/month", methods=["GET"], endpoint="class_leaves_by_month")
    def class_leaves_by_month():
        args = request.args
        items = runner.run(
            service.get_class_leaves_by_month(
                Scope.from_mapping(args),
                require_non_empty(args.get("month", ""), "month"),
                require_non_empty(args.get("yearForMonth", ""), "yearForMonth"),
            )
        )
        return jsonify([_leave_json(r) for r in items])

    @app.route("/api/leaves/class/day", methods=["GET"], endpoint="class_leaves_by_date")
    def class_leaves_by_date():
        args = request.args
        items = runner.run(service.get_class_leaves_by_date(Scope.from_mapping(args), args.get("date", "")))
        return jsonify([_leave_json(r) for r in items])
