"""
Reports Routes
Report listing, allow-listed content reads, and the agent session timeline.
"""

from flask import jsonify, request

from . import reports_bp, get_context
from ..core.reports import collect_agent_sessions, list_reports, resolve_report_path


@reports_bp.route("/reports/list", methods=["GET"])
def api_reports_list():
    return jsonify(list_reports(get_context().settings))


@reports_bp.route("/reports/content", methods=["GET"])
def api_reports_content():
    """Markdown content of one report. Only files under the report folders."""
    requested = request.args.get("file")
    path = resolve_report_path(requested, get_context().settings.report_dirs)

    if path is None:
        print(f"[Reports] Access denied: {requested!r}")
        return jsonify({"error": "Access denied"}), 403

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return jsonify({"error": "File not found"}), 404
    return jsonify({"content": content})


@reports_bp.route("/agent-sessions", methods=["GET"])
def api_agent_sessions():
    """Night missions + daily synthesis + PROGRESS.md of active projects."""
    ctx = get_context()
    registry = ctx.store.load_or_default("registry")
    return jsonify(collect_agent_sessions(ctx.settings, registry))
