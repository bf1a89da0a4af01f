"""
Second Brain readers.
Each function returns one knowledge area from ~/.claude/second-brain as
JSON-ready data. Missing files and folders read as empty.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

KNOWLEDGE_DOMAINS = ("business", "technical", "personal")


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _read_json(path: Path, default: Any = None) -> Any:
    if not path.is_file():
        return {} if default is None else default
    return json.loads(_read_text(path))


def _sorted_files(directory: Path, suffixes) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix in suffixes)


def _count_entries(directory: Path) -> int:
    return sum(1 for _ in directory.iterdir()) if directory.is_dir() else 0


def read_profile(brain_dir: Path) -> Dict[str, str]:
    return {p.stem: _read_text(p) for p in _sorted_files(brain_dir / "profile", {".md"})}


def read_knowledge(brain_dir: Path) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {domain: {} for domain in KNOWLEDGE_DOMAINS}
    for domain in KNOWLEDGE_DOMAINS:
        for p in _sorted_files(brain_dir / "knowledge" / domain, {".md", ".json"}):
            content = _read_text(p)
            data[domain][p.stem] = json.loads(content) if p.suffix == ".json" else content
    return data


def conversation_history_path(brain_dir: Path) -> Path:
    return brain_dir / "knowledge" / "personal" / "conversation-history.json"


def read_conversations(brain_dir: Path) -> Any:
    return _read_json(conversation_history_path(brain_dir))


def read_braindumps(brain_dir: Path) -> List[Dict[str, str]]:
    return [
        {"file": p.name, "content": _read_text(p)}
        for p in _sorted_files(brain_dir / "braindumps" / "raw", {".md"})
    ]


def read_stats(brain_dir: Path) -> Dict[str, Any]:
    """Counts derived from the conversation history and raw folders."""
    history = read_conversations(brain_dir)
    if not isinstance(history, dict):
        history = {}
    chatgpt = history.get("chatgpt") or {}
    claude = history.get("claude") or {}
    claude_export = history.get("claudeExport") or {}

    return {
        "profileFiles": _count_entries(brain_dir / "profile"),
        "braindumps": _count_entries(brain_dir / "braindumps" / "raw"),
        "chatgptConversations": chatgpt.get("total") or 0,
        "claudeConversations": claude.get("totalConversations") or 0,
        "claudeProjects": claude.get("totalProjects") or 0,
        "claudeExportConversations": claude_export.get("total") or 0,
        "claudeExportMessages": claude_export.get("totalMessages") or 0,
        "claudeExportProjects": claude_export.get("projects") or 0,
        "claudeExportTopics": claude_export.get("topics") or {},
        "lastAnalysis": history.get("generatedAt"),
    }


def read_creators(brain_dir: Path) -> Dict[str, Any]:
    personal = brain_dir / "knowledge" / "personal"
    data = _read_json(personal / "creators-updates.json")
    if not isinstance(data, dict):
        data = {"updates": data}

    tracking = personal / "creators-tracking.md"
    if tracking.is_file():
        data["tracking"] = _read_text(tracking)

    learn_report = brain_dir / "knowledge" / "technical" / "auto-learn-report.md"
    if learn_report.is_file():
        data["autoLearnReport"] = _read_text(learn_report)
    return data


def read_memories(brain_dir: Path) -> Dict[str, str]:
    path = brain_dir / "knowledge" / "personal" / "claude-memories.md"
    return {"content": _read_text(path)} if path.is_file() else {}


READERS = {
    "profile": read_profile,
    "knowledge": read_knowledge,
    "conversations": read_conversations,
    "braindumps": read_braindumps,
    "stats": read_stats,
    "creators": read_creators,
    "memories": read_memories,
}
