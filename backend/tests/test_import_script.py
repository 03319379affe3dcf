import json
from pathlib import Path
from app.core.cancellation import Deadline
from app.scripts.import_categories import import_categories, load_categories, main


def test_import_from_json(tmp_path: Path, session, repo, hierarchy):
    path = tmp_path / "categories.json"
    path.write_text(json.dumps([
        {"title": "Tools", "display_order": 1},
        {"title": "Drills", "parent_title": "Tools"},
        {"title": "Garden"},
    ]), encoding="utf-8")

    items = load_categories(path)
    assert import_categories(session, items) == 3

    tree = hierarchy.build_tree()
    assert [node["title"] for node in tree] == ["Garden", "Tools"]
    assert [node["title"] for node in tree[1]["children"]] == ["Drills"]


def test_usage_without_arguments():
    assert main([]) == 2


def test_deadline_timeout():
    assert Deadline(timeout=0).expired is True
    assert Deadline().expired is False
