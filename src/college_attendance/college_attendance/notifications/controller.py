from __future__ import annotations

from flask import Flask, jsonify

from ..common.async_runner import AsyncRunner
from ..common.serialization import jsonable
from ..container import Container


def register(app: Flask, container: Container, runner: AsyncRunner) -> None:
    service = container.notification_service

    @app.route("/api/notifications/users/<user_id>", methods=["GET"], endpoint="notifications_by_user")
    def notifications_by_user(user_id: str):
        items = runner.run(service.get_notifications_by_user(user_id))
        unread = runner.run(service.get_unread_count(user_id))
        return jsonify(
            {
                "unread": unread,
                "items": [jsonable({"id": n.notification_id, **n.to_document()}) for n in items],
            }
        )

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    def mark_notification_read(notification_id: str):
        runner.run(service.mark_as_read(notification_id))
        return jsonify({"success": True})

    @app.route("/api/notifications/<notification_id>/archive", methods=["POST"], endpoint="archive_notification")
    def archive_notification(notification_id: str):
        runner.run(service.archive(notification_id))
        return jsonify({"success": True})
