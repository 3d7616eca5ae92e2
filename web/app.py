"""
Flask JSON API for Reef Monitor.

Exposes the alert list and settings to the dashboard frontend:

  GET    /api/alerts            — Live alerts, most recent first
  POST   /api/alerts            — Add a manual alert {"type", "message"}
  DELETE /api/alerts/<id>       — Dismiss one alert
  DELETE /api/alerts            — Clear all alerts
  GET    /api/settings          — Current threshold settings
  PUT    /api/settings          — Partial settings update
  POST   /api/settings/reset    — Restore default settings
  POST   /api/snapshot          — Ingest a reading and evaluate it
  GET    /api/health            — Liveness plus last reading

Started via: python main.py web [--port 5000] [--host 0.0.0.0]
"""
import logging

from flask import Flask, jsonify, request

from models.parameters import ParameterSnapshot
from monitor.monitor import SettingsError

logger = logging.getLogger("reefmonitor.web.app")


def create_app(config: dict, engines: dict) -> Flask:
    """
    Factory function. Receives initialized engines from main.py CLI.

    Args:
        config: Application config dict
        engines: dict of initialized engine objects (monitor, scheduler)
    """
    app = Flask(__name__)
    app.json.ensure_ascii = False
    monitor = engines["monitor"]

    # ─── Alerts ──────────────────────────────────────────

    @app.route("/api/alerts", methods=["GET"])
    def api_alerts():
        try:
            limit = min(int(request.args.get("limit", 20)), 100)
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400
        alerts = [a.to_dict() for a in monitor.alerts[:limit]]
        return jsonify({"alerts": alerts, "count": len(alerts)})

    @app.route("/api/alerts", methods=["POST"])
    def api_add_alert():
        body = request.get_json(silent=True) or {}
        try:
            alert = monitor.add_alert(body.get("type", "info"), body.get("message", ""))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({"alert": alert.to_dict()}), 201

    @app.route("/api/alerts/<alert_id>", methods=["DELETE"])
    def api_dismiss_alert(alert_id):
        removed = monitor.dismiss_alert(alert_id)
        return jsonify({"dismissed": removed, "id": alert_id})

    @app.route("/api/alerts", methods=["DELETE"])
    def api_clear_alerts():
        count = monitor.clear_all_alerts()
        return jsonify({"cleared": count})

    # ─── Settings ────────────────────────────────────────

    @app.route("/api/settings", methods=["GET"])
    def api_settings():
        return jsonify(monitor.settings.to_dict())

    @app.route("/api/settings", methods=["PUT", "PATCH"])
    def api_update_settings():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            updated = monitor.update_settings(**body)
        except SettingsError as e:
            return jsonify({"error": str(e)}), 400
        except OSError as e:
            logger.error(f"Settings save failed: {e}")
            return jsonify({"error": "Could not save settings"}), 500
        return jsonify(updated.to_dict())

    @app.route("/api/settings/reset", methods=["POST"])
    def api_reset_settings():
        try:
            config_obj = monitor.reset_settings()
        except OSError as e:
            logger.error(f"Settings reset failed: {e}")
            return jsonify({"error": "Could not save settings"}), 500
        return jsonify(config_obj.to_dict())

    # ─── Readings ────────────────────────────────────────

    @app.route("/api/snapshot", methods=["POST"])
    def api_snapshot():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        snapshot = ParameterSnapshot.from_dict(body)
        raised = monitor.process(snapshot)
        return jsonify({
            "raised": [a.to_dict() for a in raised],
            "alerts": [a.to_dict() for a in monitor.alerts],
        })

    @app.route("/api/health")
    def api_health():
        snapshot = monitor.last_snapshot
        return jsonify({
            "status": "ok",
            "alerts": len(monitor.alerts),
            "last_snapshot": snapshot.to_dict() if snapshot else None,
        })

    return app
