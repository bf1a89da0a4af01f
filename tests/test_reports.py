"""
Report tests - listing, allow-listed reads, markdown parsers and the
agent session timeline.

Run with: pytest tests/test_reports.py -v
"""

import os
from datetime import date

import pytest

from claude_dashboard.core.reports import (
    collect_agent_sessions,
    parse_daily_synthesis,
    parse_mission_report,
    parse_progress_notes,
    resolve_report_path,
)
from conftest import write_json, write_text

MISSION_REPORT = """# דוח משימת לילה

## סיכום מנהלים
שלושה סוכנים רצו הלילה, שניים הצליחו.

---

## סוכנים

| # | פרויקט | משימה | Agent ID | סטטוס |
|---|--------|-------|----------|-------|
| 1 | dashboard | fix websocket reconnect | a1b2c3 | ✅ הושלם |
| 2 | brain | import notes | a9f00d | completed |
| 3 | reports | parse weekly | a44e1 | ❌ failed |
| 4 | misc | no agent id | manual | completed |
"""

DAILY_SYNTHESIS = """# סיכום יומי

## פרויקטים
- 🚀 **Dashboard** - live sync shipped (active)
- 🧠 **Second Brain** (paused)
- plain line without bold
"""

PROGRESS = """# Progress
Last Updated: 2024-03-02 21:40

## Current State
Live updates work end to end.

## What Was Done
- Added WebSocket push
- Wrote tests
"""


class TestMissionParser:
    """parse_mission_report()"""

    def test_agent_rows(self):
        parsed = parse_mission_report(MISSION_REPORT)

        assert [a["agentId"] for a in parsed["agents"]] == ["a1b2c3", "a9f00d", "a44e1"]
        assert parsed["agents"][0] == {
            "num": "1",
            "project": "dashboard",
            "task": "fix websocket reconnect",
            "agentId": "a1b2c3",
            "status": "✅ הושלם",
        }
        assert parsed["agentCount"] == 3

    def test_success_count(self):
        """Hebrew and English completion markers both count."""
        assert parse_mission_report(MISSION_REPORT)["successCount"] == 2

    def test_summary(self):
        assert parse_mission_report(MISSION_REPORT)["summary"] == "שלושה סוכנים רצו הלילה, שניים הצליחו."

    def test_crlf_report(self):
        parsed = parse_mission_report(MISSION_REPORT.replace("\n", "\r\n"))
        assert parsed["summary"].startswith("שלושה")
        assert parsed["agentCount"] == 3

    def test_malformed_report_degrades(self):
        assert parse_mission_report("no tables, no headings") == {
            "agents": [],
            "agentCount": 0,
            "successCount": 0,
            "summary": "",
        }


class TestDailyAndProgressParsers:
    """parse_daily_synthesis() / parse_progress_notes()"""

    def test_daily_projects(self):
        assert parse_daily_synthesis(DAILY_SYNTHESIS) == [
            {"name": "Dashboard", "status": "active"},
            {"name": "Second Brain", "status": "paused"},
        ]

    def test_progress_sections(self):
        notes = parse_progress_notes(PROGRESS)

        assert notes["lastUpdated"] == "2024-03-02 21:40"
        assert notes["currentState"] == "Live updates work end to end."
        assert notes["whatWasDone"] == "- Added WebSocket push\n- Wrote tests"

    def test_progress_truncation(self):
        notes = parse_progress_notes("## Current State\n" + "x" * 1000 + "\n## Next\n")
        assert len(notes["currentState"]) == 300

    def test_progress_missing_sections(self):
        assert parse_progress_notes("just text") == {
            "lastUpdated": "", "currentState": "", "whatWasDone": ""
        }


class TestResolveReportPath:
    """Allow-list check for /api/reports/content."""

    @pytest.fixture
    def allowed(self, tmp_path):
        docs = tmp_path / "Documents"
        docs.mkdir()
        return docs

    def test_allowed_markdown(self, allowed):
        report = allowed / "night-mission-report-2024-03-01.md"
        report.write_text("ok", encoding="utf-8")
        assert resolve_report_path(str(report), [allowed]) == report.resolve()

    def test_traversal_rejected(self, allowed, tmp_path):
        """`..` segments are resolved before the containment check."""
        secret = tmp_path / "secret.md"
        secret.write_text("no", encoding="utf-8")

        assert resolve_report_path(str(allowed / ".." / "secret.md"), [allowed]) is None

    def test_sibling_prefix_rejected(self, allowed, tmp_path):
        """`Documents-private` shares a string prefix but is not inside."""
        sibling = tmp_path / "Documents-private"
        sibling.mkdir()
        (sibling / "x.md").write_text("no", encoding="utf-8")

        assert resolve_report_path(str(sibling / "x.md"), [allowed]) is None

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="needs symlinks")
    def test_symlink_escape_rejected(self, allowed, tmp_path):
        outside = tmp_path / "outside.md"
        outside.write_text("no", encoding="utf-8")
        (allowed / "link.md").symlink_to(outside)

        assert resolve_report_path(str(allowed / "link.md"), [allowed]) is None

    def test_wrong_extension_rejected(self, allowed):
        (allowed / "notes.txt").write_text("no", encoding="utf-8")
        assert resolve_report_path(str(allowed / "notes.txt"), [allowed]) is None
        assert resolve_report_path(str(allowed / "notes.md.bak"), [allowed]) is None

    def test_empty_request_rejected(self, allowed):
        assert resolve_report_path("", [allowed]) is None
        assert resolve_report_path(None, [allowed]) is None


class TestReportRoutes:
    """GET /api/reports/list and /api/reports/content"""

    def test_missions_sorted_newest_first(self, client, settings):
        write_text(settings.documents_dir / "night-mission-report-2024-02-15.md", "a")
        write_text(settings.documents_dir / "night-mission-report-2024-03-01.md", "b")
        write_text(settings.documents_dir / "unrelated.md", "c")
        write_text(settings.daily_dir / "daily-2024-03-01.md", "d")

        data = client.get("/api/reports/list").get_json()

        assert [m["date"] for m in data["missions"]] == ["2024-03-01", "2024-02-15"]
        assert data["missions"][0]["name"] == "משימת לילה 2024-03-01"
        assert data["missions"][0]["path"] == str(settings.documents_dir / "night-mission-report-2024-03-01.md")
        assert [d["date"] for d in data["daily"]] == ["2024-03-01"]
        assert data["weekly"] == []

    def test_content_allowed(self, client, settings):
        report = settings.weekly_dir / "synthesis-2024-03-03.md"
        write_text(report, "# Weekly")

        response = client.get("/api/reports/content", query_string={"file": str(report)})

        assert response.status_code == 200
        assert response.get_json() == {"content": "# Weekly"}

    @pytest.mark.parametrize("requested", [
        "/etc/passwd",
        "../../../../etc/hosts.md",
        "{docs}/../.claude/projects-registry.json",
        "{docs}/../secret.md",
    ])
    def test_content_outside_allow_list_is_403(self, client, settings, requested):
        write_text(settings.home / "secret.md", "secret")
        settings.documents_dir.mkdir(exist_ok=True)

        response = client.get(
            "/api/reports/content",
            query_string={"file": requested.format(docs=settings.documents_dir)},
        )

        assert response.status_code == 403
        assert response.get_json() == {"error": "Access denied"}

    def test_content_wrong_extension_is_403(self, client, settings):
        target = settings.documents_dir / "passwords.txt"
        write_text(target, "hunter2")

        response = client.get("/api/reports/content", query_string={"file": str(target)})
        assert response.status_code == 403

    def test_content_missing_file_is_404(self, client, settings):
        settings.daily_dir.mkdir(parents=True)
        target = settings.daily_dir / "daily-2020-01-01.md"

        response = client.get("/api/reports/content", query_string={"file": str(target)})
        assert response.status_code == 404

    def test_content_invalid_utf8_is_replaced(self, client, settings):
        report = settings.daily_dir / "daily-2024-01-01.md"
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_bytes(b"# hi \xff\xfe bad")

        response = client.get("/api/reports/content", query_string={"file": str(report)})

        assert response.status_code == 200
        content = response.get_json()["content"]
        assert content.startswith("# hi ") and content.endswith(" bad")
        assert "\ufffd" in content

    def test_content_without_file_param_is_403(self, client):
        assert client.get("/api/reports/content").status_code == 403


class TestAgentSessions:
    """collect_agent_sessions() and GET /api/agent-sessions"""

    def test_timeline(self, settings, tmp_path):
        write_text(settings.documents_dir / "night-mission-report-2024-03-01.md", MISSION_REPORT)
        write_text(settings.documents_dir / "night-mission-report-2024-02-20.md", "empty night")
        write_text(settings.daily_dir / "daily-2024-03-01.md", DAILY_SYNTHESIS)
        write_text(settings.daily_dir / "daily-2024-03-02.md", DAILY_SYNTHESIS)

        active = tmp_path / "active-project"
        write_text(active / "PROGRESS.md", PROGRESS)
        paused = tmp_path / "paused-project"
        write_text(paused / "PROGRESS.md", PROGRESS)
        registry = {"projects": [
            {"id": "p1", "name": "Dashboard", "icon": "🚀", "status": "active",
             "folder": str(active), "lastSession": "2024-03-02"},
            {"id": "p2", "name": "Old", "status": "active",
             "folder": str(active), "lastSession": "2024-01-01"},
            {"id": "p3", "name": "Paused", "status": "paused",
             "folder": str(paused), "lastSession": "2024-03-02"},
            {"id": "p4", "name": "No folder", "status": "active", "lastSession": "2024-03-02"},
        ]}

        result = collect_agent_sessions(settings, registry, today=date(2024, 3, 4))

        assert [(s["type"], s["date"]) for s in result["sessions"]] == [
            ("daily", "2024-03-02"),
            ("mission", "2024-03-01"),
            ("mission", "2024-02-20"),
        ]
        mission = result["sessions"][1]
        assert mission["dailyProjects"][0]["name"] == "Dashboard"
        assert result["lastMission"]["date"] == "2024-03-01"
        assert result["stats"] == {"totalMissions": 2, "totalAgents": 3, "totalSuccess": 2}

        [update] = result["progressUpdates"]
        assert update["projectId"] == "p1"
        assert update["lastUpdated"] == "2024-03-02 21:40"
        assert update["icon"] == "🚀"

    def test_nothing_on_disk(self, settings):
        result = collect_agent_sessions(settings, {}, today=date(2024, 3, 4))
        assert result == {
            "sessions": [],
            "lastMission": None,
            "stats": {"totalMissions": 0, "totalAgents": 0, "totalSuccess": 0},
            "progressUpdates": [],
        }

    def test_route_uses_registry(self, client, settings):
        write_json(settings.registry_path, {"projects": []})
        write_text(settings.documents_dir / "night-mission-report-2024-03-01.md", MISSION_REPORT)

        data = client.get("/api/agent-sessions").get_json()

        assert data["stats"]["totalAgents"] == 3
        assert data["sessions"][0]["file"] == "night-mission-report-2024-03-01.md"

    @pytest.mark.parametrize("projects", [5, "p1", {"id": "p1"}, None])
    def test_non_list_projects_still_reports(self, client, settings, projects):
        """A registry with a malformed projects field keeps the mission timeline."""
        write_json(settings.registry_path, {"projects": projects})
        write_text(settings.documents_dir / "night-mission-report-2024-03-01.md", MISSION_REPORT)

        response = client.get("/api/agent-sessions")

        assert response.status_code == 200
        data = response.get_json()
        assert data["progressUpdates"] == []
        assert data["stats"]["totalMissions"] == 1
