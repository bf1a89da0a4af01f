"""
Second Brain Routes
Knowledge area reads and the Claude-Mem proxy.
"""

from flask import jsonify, request

from . import brain_bp, get_context
from ..core.brain import READERS
from ..core.sidecar import SidecarUnavailable

CLAUDE_MEM = "claude-mem"


@brain_bp.route("/<path:endpoint>", methods=["GET"])
def api_brain(endpoint):
    ctx = get_context()

    if endpoint == CLAUDE_MEM or endpoint.startswith(CLAUDE_MEM + "/"):
        sub_path = endpoint[len(CLAUDE_MEM):]
        return jsonify(ctx.sidecar.route(sub_path, request.args.get("anchor", "")))

    reader = READERS.get(endpoint)
    if reader is None:
        return jsonify({})

    try:
        data = reader(ctx.settings.brain_dir)
    except (OSError, ValueError) as e:
        print(f"[Brain] {endpoint} read error: {e}")
        data = {}
    return jsonify(data)


@brain_bp.route("/claude-mem/save", methods=["POST"])
def api_claude_mem_save():
    """Save-through to the sidecar's memory store."""
    data = request.get_json(force=True, silent=True)
    if data is None:
        return jsonify({"error": "Invalid JSON body"}), 400

    try:
        result = get_context().sidecar.save_memory(data)
    except SidecarUnavailable as e:
        return jsonify({"error": f"Claude-Mem unavailable: {e}"}), 502
    return jsonify(result)
