"""
Claude Dashboard Server
Main Flask application with route registration, plus the entry point that
starts the live-update channel and the state file watches.
"""

import argparse
import socket
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .api import CONTEXT_KEY, register_blueprints
from .config import APP_NAME, VERSION, Settings
from .context import ServerContext


# ---------------------------------------------------------------------------
# Port Management
# ---------------------------------------------------------------------------
def is_port_in_use(port: int) -> bool:
    """Check if a port is already in use."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex(('localhost', port)) == 0


# ---------------------------------------------------------------------------
# Flask Application
# ---------------------------------------------------------------------------
def create_app(context: Optional[ServerContext] = None) -> Flask:
    """Build the Flask app around a ServerContext (created from env if omitted)."""
    context = context or ServerContext.create()

    app = Flask(__name__, static_folder=None)
    app.extensions[CONTEXT_KEY] = context
    app.json.ensure_ascii = False
    app.json.sort_keys = False
    app.json.mimetype = "application/json; charset=utf-8"

    CORS(app, methods=["GET", "POST", "OPTIONS"], allow_headers=["Content-Type"])
    register_blueprints(app)

    @app.after_request
    def no_cache(response):
        response.headers["Cache-Control"] = "no-cache"
        return response

    @app.errorhandler(404)
    def not_found(e):
        return "Not found", 404

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        print(f"[Server] Unhandled error on {request.method} {request.path}: {e!r}")
        return jsonify({"status": "error", "message": str(e)}), 500

    return app


def print_banner(settings: Settings):
    print(f"""
╔══════════════════════════════════════════╗
║     🤖 {APP_NAME} Server v{VERSION:<15}║
╠══════════════════════════════════════════╣
  📍 http://localhost:{settings.http_port}
  🔌 ws://localhost:{settings.ws_port}
  📂 {settings.base_dir}

  Features:
  ✓ Real-time sync (WebSocket)
  ✓ Drag & Drop save
  ✓ Direct project launch
  ✓ Token tracking
╚══════════════════════════════════════════╝

Press Ctrl+C to stop
""")


# ---------------------------------------------------------------------------
# Main Entry Point
# ---------------------------------------------------------------------------
def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=f"{APP_NAME} server")
    parser.add_argument("--port", type=int, help="HTTP port (default 3456)")
    parser.add_argument("--ws-port", type=int, help="Live update WebSocket port (default 3457)")
    parser.add_argument("--home", help="Home directory containing .claude/")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress startup banner")
    args = parser.parse_args(argv)

    settings = Settings.from_env(args.home)
    if args.port:
        settings.http_port = args.port
    if args.ws_port:
        settings.ws_port = args.ws_port

    if is_port_in_use(settings.http_port):
        print(f"⚠️  Port {settings.http_port} is in use")
        print("   Kill the other process or pass --port.")
        return 1

    context = ServerContext.create(settings)
    app = create_app(context)
    context.start()

    if not args.quiet:
        print_banner(settings)

    try:
        app.run(host=settings.host, port=settings.http_port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        pass
    finally:
        context.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
