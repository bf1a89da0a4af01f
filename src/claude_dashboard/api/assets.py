"""
Dashboard Static Routes
Fixed URL -> file table for the UI pages and JSON passthrough files.
"""

from pathlib import Path

from flask import Response

from . import assets_bp, get_context

MIME_TYPES = {
    '.html': 'text/html; charset=utf-8',
    '.json': 'application/json; charset=utf-8',
    '.js': 'application/javascript',
    '.css': 'text/css',
    '.svg': 'image/svg+xml',
}

# URL -> path parts under ~/.claude
STATIC_ROUTES = {
    "/": ("dashboard", "index.html"),
    "/index.html": ("dashboard", "index.html"),
    "/brain": ("second-brain", "ui", "index.html"),
    "/brain/": ("second-brain", "ui", "index.html"),
    "/reports": ("dashboard", "reports", "index.html"),
    "/reports/": ("dashboard", "reports", "index.html"),
    "/projects-registry.json": ("projects-registry.json",),
    "/token-usage.json": ("token-usage.json",),
    "/manifest.json": ("dashboard", "manifest.json"),
    "/sw.js": ("dashboard", "sw.js"),
}


def send_asset(path: Path) -> Response:
    """
    Respond with a file's bytes.

    A missing .json file answers `{}` so API consumers never see a 404
    for data that simply has not been written yet.
    """
    content_type = MIME_TYPES.get(path.suffix, 'text/plain')
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        if path.suffix == '.json':
            return Response('{}', content_type=content_type)
        return Response('Not found', status=404, content_type='text/plain')
    except OSError as e:
        print(f"[Assets] Read error for {path}: {e}")
        return Response('Server error', status=500, content_type='text/plain')
    return Response(content, content_type=content_type)


def serve_static(route: str):
    base_dir = get_context().settings.base_dir
    return send_asset(base_dir.joinpath(*STATIC_ROUTES[route]))


for _index, _route in enumerate(STATIC_ROUTES):
    assets_bp.add_url_rule(
        _route,
        endpoint=f"static_{_index}",
        view_func=serve_static,
        defaults={"route": _route},
        methods=["GET"],
    )
