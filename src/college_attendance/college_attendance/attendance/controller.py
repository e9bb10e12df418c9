from __future__ import annotations

from flask import Flask, Response, jsonify, request

from ..common.async_runner import AsyncRunner
from ..common.datetime_utils import parse_iso_date
from ..common.serialization import jsonable
from ..common.validators import require_non_empty
from ..container import Container
from ..core.enums import ExportGranularity
from ..core.exceptions import ValidationError
from ..partitions.keys import Scope
from .model import AttendanceMark, AttendanceRecord, parse_status


def _record_json(r: AttendanceRecord) -> dict:
    return jsonable(r.to_document())


def _mark_from_json(body: dict) -> AttendanceMark:
    return AttendanceMark(
        roll_number=require_non_empty(body.get("rollNumber") or body.get("userId") or "", "rollNumber"),
        day=parse_iso_date(body.get("date") or ""),
        status=parse_status(body.get("status")),
        subject=str(body.get("subject") or ""),
        year=str(body.get("year") or ""),
        sem=str(body.get("sem") or ""),
        div=str(body.get("div") or ""),
        user_id=body.get("userId"),
        user_name=str(body.get("userName") or ""),
        notes=body.get("notes"),
    )


def register(app: Flask, container: Container, runner: AsyncRunner) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="mark_attendance")
    def mark_attendance():
        mark = _mark_from_json(request.get_json(force=True) or {})
        record_id = runner.run(service.mark_attendance(mark))
        return jsonify({"id": record_id}), 201

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="mark_bulk_attendance")
    def mark_bulk_attendance():
        body = request.get_json(force=True) or {}
        shared = {k: body.get(k) for k in ("year", "sem", "div", "subject", "date")}
        marks = [_mark_from_json({**shared, **entry}) for entry in body.get("students") or []]
        result = runner.run(service.mark_bulk_attendance(marks))
        return jsonify({"succeeded": result.succeeded, "failed": result.failed})

    @app.route("/api/attendance/users/<user_id>", methods=["GET"], endpoint="attendance_by_user")
    def attendance_by_user(user_id: str):
        records = runner.run(service.get_attendance_by_user(user_id))
        return jsonify([_record_json(r) for r in records])

    @app.route("/api/attendance/organized", methods=["GET"], endpoint="organized_attendance")
    def organized_attendance():
        args = request.args
        records = runner.run(
            service.get_organized_attendance_by_user_and_date_range(
                require_non_empty(args.get("rollNumber", ""), "rollNumber"),
                Scope.from_mapping(args),
                parse_iso_date(args.get("start", "")),
                parse_iso_date(args.get("end", "")),
            )
        )
        return jsonify([_record_json(r) for r in records])

    @app.route("/api/attendance/export", methods=["POST"], endpoint="export_attendance")
    def export_attendance():
        body = request.get_json(force=True) or {}
        subjects = list(body.get("subjects") or [])
        students = list(body.get("students") or [])
        granularity = body.get("granularity", ExportGranularity.MONTH.value)
        try:
            granularity = ExportGranularity(granularity)
        except ValueError:
            raise ValidationError(f"Unknown export granularity: {granularity!r}")

        scope = Scope.from_mapping(body, subject="")
        export = runner.run(
            service.get_batch_attendance_for_export(
                scope,
                subjects,
                parse_iso_date(body.get("start") or ""),
                parse_iso_date(body.get("end") or ""),
                students,
                granularity=granularity,
            )
        )

        fmt = (request.args.get("format") or "json").lower()
        if fmt == "json":
            return jsonify(
                {roll: {s: [_record_json(r) for r in recs] for s, recs in by_subject.items()} for roll, by_subject in export.items()}
            )

        reports = container.report_service
        names = body.get("studentNames") or {}
        kind = (request.args.get("report") or "subject").lower()
        if kind == "subject":
            frame = reports.build_subject_summary(export, division=scope.div, student_names=names)
        elif kind == "student":
            frame = reports.build_student_summary(export, division=scope.div, student_names=names)
        elif kind == "detail":
            frame = reports.build_detail([r for by_subject in export.values() for recs in by_subject.values() for r in recs])
        else:
            raise ValidationError(f"Unknown report type: {kind!r}")
        filename = f"attendance_{scope.year}_{scope.sem}_{scope.div}"
        if fmt == "csv":
            return Response(
                reports.to_csv_bytes(frame),
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}.csv"},
            )
        if fmt == "xlsx":
            return Response(
                reports.to_excel_bytes(frame),
                mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"},
            )
        raise ValidationError(f"Unknown export format: {fmt!r}")
