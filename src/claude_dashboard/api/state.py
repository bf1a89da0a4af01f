"""
Dashboard State Routes
Registry / token writes (with live broadcast) and terminal launch.
"""

from flask import jsonify, request
from werkzeug.exceptions import BadRequest

from . import state_bp, get_context
from ..core.launcher import terminal_command


def _json_body():
    """Request body as JSON regardless of Content-Type. Raises BadRequest if malformed."""
    return request.get_json(force=True)


def _save_and_broadcast(name: str):
    try:
        data = _json_body()
    except BadRequest:
        return jsonify({"error": "Invalid JSON body"}), 400
    if data is None:
        return jsonify({"error": "JSON body must not be null"}), 400

    ctx = get_context()
    try:
        ctx.store.save(name, data)
    except OSError as e:
        print(f"[State] Save error for {name}: {e}")
        return jsonify({"error": str(e)}), 500

    ctx.notify_all()
    return jsonify({"success": True})


@state_bp.route("/save-registry", methods=["POST"])
def api_save_registry():
    """Replace the project registry and push it to live clients."""
    return _save_and_broadcast("registry")


@state_bp.route("/update-tokens", methods=["POST"])
def api_update_tokens():
    """Replace the token usage document and push it to live clients."""
    return _save_and_broadcast("tokens")


@state_bp.route("/launch", methods=["POST"])
def api_launch():
    """Open a new terminal window running the given command."""
    try:
        data = _json_body()
    except BadRequest:
        data = None
    command = data.get("command") if isinstance(data, dict) else None
    if not isinstance(command, str) or not command.strip():
        return jsonify({"error": "command required"}), 400

    get_context().launcher.spawn(terminal_command(command), label="terminal")
    return jsonify({"success": True})
