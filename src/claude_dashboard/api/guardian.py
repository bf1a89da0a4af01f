"""
Guardian Routes
Status of the session guardian and its maintenance actions.
"""

from flask import jsonify, request

from . import guardian_bp, get_context
from ..core.guardian import UnknownActionError, build_action_command, collect_status


@guardian_bp.route("", methods=["GET"])
def api_guardian_status():
    return jsonify(collect_status(get_context().settings))


@guardian_bp.route("/action", methods=["GET"])
def api_guardian_action_get():
    return "Use POST", 405


@guardian_bp.route("/action", methods=["POST"])
def api_guardian_action():
    """Run one maintenance action; returns before the command finishes."""
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    ctx = get_context()
    action = data.get("action")
    folder = data.get("folder") if isinstance(data.get("folder"), str) else None

    try:
        command = build_action_command(action, ctx.settings, folder=folder)
    except UnknownActionError:
        return jsonify({"error": f"Unknown action: {action}"}), 400

    ctx.launcher.spawn(command, timeout=ctx.settings.action_timeout, label=action)
    return jsonify({"success": True, "action": action})
