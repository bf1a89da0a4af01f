"""
Report files: listing, safe reading, and markdown scraping.

Night-mission reports, daily and weekly syntheses, and per-project
PROGRESS.md notes are written by other tools. Everything here is
read-only and pattern based: a section that cannot be found yields an
empty field, never an error.
"""

import os
import re
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..config import MAX_SESSIONS_PER_KIND, PROGRESS_WINDOW_DAYS, TERMINAL_STATUSES, Settings

DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")

# (result key, settings attribute, filename prefix, display label)
REPORT_KINDS = (
    ("missions", "documents_dir", "night-mission-report-", "משימת לילה "),
    ("daily", "daily_dir", "daily-", "סיכום יומי "),
    ("weekly", "weekly_dir", "synthesis-", "סינתזה שבועית "),
)

MISSION_PREFIX = "night-mission-report-"
DAILY_PREFIX = "daily-"
REPORT_SUFFIX = ".md"

AGENT_ROW_RE = re.compile(r"\|\s*\d+\s*\|[^|]+\|[^|]+\|[^|]+\|[^|]+\|")
AGENT_NUM_RE = re.compile(r"^[1-9]\d*$")
AGENT_ID_RE = re.compile(r"^a[0-9a-f]+$", re.IGNORECASE)
SUCCESS_RE = re.compile(r"הושלם|completed|success", re.IGNORECASE)
SUMMARY_RE = re.compile(r"## סיכום מנהלים\n([\s\S]*?)(?=\n---|\n##)")

DAILY_PROJECT_RE = re.compile(r"- .+\*\*.+\*\*.+")
BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
PAREN_RE = re.compile(r"\((.+?)\)")

LAST_UPDATED_RE = re.compile(r"Last Updated:\s*(.+)", re.IGNORECASE)


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n")


def extract_date(filename: str) -> str:
    match = DATE_RE.search(filename)
    return match.group(1) if match else ""


def report_files(directory: Path, prefix: str) -> List[str]:
    """Names of `<prefix>*.md` files in a directory; [] if it is missing."""
    if not directory.is_dir():
        return []
    return [
        f for f in os.listdir(directory)
        if f.startswith(prefix) and f.endswith(REPORT_SUFFIX)
    ]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
def list_reports(settings: Settings) -> Dict[str, List[Dict[str, str]]]:
    """Three date-descending lists of {name, date, path}."""
    result: Dict[str, List[Dict[str, str]]] = {}
    for key, attr, prefix, label in REPORT_KINDS:
        directory = getattr(settings, attr)
        entries = []
        try:
            names = report_files(directory, prefix)
        except OSError as e:
            print(f"[Reports] Cannot list {directory}: {e}")
            names = []
        for name in names:
            stem = name[:-len(REPORT_SUFFIX)]
            entries.append({
                "name": label + stem[len(prefix):],
                "date": extract_date(name),
                "path": str(directory / name),
            })
        entries.sort(key=lambda entry: entry["date"], reverse=True)
        result[key] = entries
    return result


# ---------------------------------------------------------------------------
# Safe content access
# ---------------------------------------------------------------------------
def resolve_report_path(requested: Optional[str], allowed_dirs: Iterable[Path]) -> Optional[Path]:
    """
    Canonicalize a requested path and return it only if it is a markdown
    file located inside one of the allowed directories.

    Both sides are passed through realpath (symlinks, `..`) and normcase
    before a path-segment containment check.
    """
    if not requested or "\x00" in requested:
        return None

    resolved = os.path.realpath(requested)
    if os.path.splitext(resolved)[1] != REPORT_SUFFIX:
        return None

    candidate = os.path.normcase(resolved)
    for directory in allowed_dirs:
        root = os.path.normcase(os.path.realpath(directory))
        try:
            if os.path.commonpath([candidate, root]) == root:
                return Path(resolved)
        except ValueError:
            # Different drives on Windows
            continue
    return None


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------
def parse_mission_report(text: str) -> Dict[str, Any]:
    """Agent table rows, success count and executive summary of a mission report."""
    text = _normalize(text)

    agents = []
    for row in AGENT_ROW_RE.findall(text):
        cols = [c.strip() for c in row.split("|") if c.strip()]
        if len(cols) < 5 or "---" in cols[0]:
            continue
        if not AGENT_NUM_RE.match(cols[0]) or not AGENT_ID_RE.match(cols[3]):
            continue
        agents.append({
            "num": cols[0],
            "project": cols[1],
            "task": cols[2],
            "agentId": cols[3],
            "status": cols[4],
        })

    summary = SUMMARY_RE.search(text)
    return {
        "agents": agents,
        "agentCount": len(agents),
        "successCount": sum(1 for a in agents if SUCCESS_RE.search(a["status"])),
        "summary": summary.group(1).strip() if summary else "",
    }


def parse_daily_synthesis(text: str) -> List[Dict[str, str]]:
    """Project bullet lines: `- ... **name** ... (status)`."""
    projects = []
    for line in DAILY_PROJECT_RE.findall(_normalize(text)):
        name = BOLD_RE.search(line)
        status = PAREN_RE.search(line)
        projects.append({
            "name": name.group(1) if name else "",
            "status": status.group(1) if status else "",
        })
    return projects


def _section(text: str, heading: str) -> str:
    match = re.search(rf"## {re.escape(heading)}\n([\s\S]*?)(?=\n##|\n?\Z)", text)
    return match.group(1).strip() if match else ""


def parse_progress_notes(text: str) -> Dict[str, str]:
    text = _normalize(text)
    last_updated = LAST_UPDATED_RE.search(text)
    return {
        "lastUpdated": last_updated.group(1).strip() if last_updated else "",
        "currentState": _section(text, "Current State")[:300],
        "whatWasDone": _section(text, "What Was Done")[:500],
    }


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _recent_reports(directory: Path, prefix: str) -> List[str]:
    try:
        names = report_files(directory, prefix)
    except OSError as e:
        print(f"[Reports] Cannot list {directory}: {e}")
        return []
    return sorted(names, reverse=True)


def _progress_updates(registry: Dict[str, Any], today: date) -> List[Dict[str, Any]]:
    cutoff = (today - timedelta(days=PROGRESS_WINDOW_DAYS)).isoformat()
    updates = []

    projects = registry.get("projects")
    if not isinstance(projects, list):
        return updates

    for project in projects:
        if not isinstance(project, dict):
            continue
        last_session = str(project.get("lastSession") or "")
        folder = project.get("folder")
        if not last_session or last_session < cutoff or not folder:
            continue
        if project.get("status") in TERMINAL_STATUSES:
            continue

        progress_path = Path(folder) / "PROGRESS.md"
        if not progress_path.is_file():
            continue
        try:
            notes = parse_progress_notes(_read(progress_path))
        except OSError as e:
            print(f"[Reports] Skipping {progress_path}: {e}")
            continue

        updates.append({
            "projectId": project.get("id"),
            "projectName": project.get("name"),
            "icon": project.get("icon"),
            "lastUpdated": notes["lastUpdated"] or last_session,
            "currentState": notes["currentState"],
            "whatWasDone": notes["whatWasDone"],
        })
    return updates


def collect_agent_sessions(settings: Settings, registry: Dict[str, Any],
                           today: Optional[date] = None) -> Dict[str, Any]:
    """
    Unified, date-descending timeline of mission reports and daily
    syntheses, plus progress notes of recently active projects.
    """
    today = today or date.today()
    if not isinstance(registry, dict):
        registry = {}

    result: Dict[str, Any] = {
        "sessions": [],
        "lastMission": None,
        "stats": {"totalMissions": 0, "totalAgents": 0, "totalSuccess": 0},
        "progressUpdates": [],
    }
    missions_by_date: Dict[str, Dict[str, Any]] = {}

    mission_files = _recent_reports(settings.documents_dir, MISSION_PREFIX)
    result["stats"]["totalMissions"] = len(mission_files)
    for name in mission_files[:MAX_SESSIONS_PER_KIND]:
        try:
            parsed = parse_mission_report(_read(settings.documents_dir / name))
        except OSError as e:
            print(f"[Reports] Skipping {name}: {e}")
            continue

        session = {"type": "mission", "date": extract_date(name), "file": name, **parsed}
        result["stats"]["totalAgents"] += parsed["agentCount"]
        result["stats"]["totalSuccess"] += parsed["successCount"]
        result["sessions"].append(session)
        missions_by_date.setdefault(session["date"], session)
        if result["lastMission"] is None:
            result["lastMission"] = session

    for name in _recent_reports(settings.daily_dir, DAILY_PREFIX)[:MAX_SESSIONS_PER_KIND]:
        try:
            projects = parse_daily_synthesis(_read(settings.daily_dir / name))
        except OSError as e:
            print(f"[Reports] Skipping {name}: {e}")
            continue

        day = extract_date(name)
        mission = missions_by_date.get(day)
        if mission is not None:
            mission["dailyProjects"] = projects
        else:
            result["sessions"].append({
                "type": "daily",
                "date": day,
                "file": name,
                "projects": projects,
                "projectCount": len(projects),
            })

    result["progressUpdates"] = _progress_updates(registry, today)
    result["sessions"].sort(key=lambda s: s["date"], reverse=True)
    return result
