from __future__ import annotations

from pathlib import Path

from cleanswift.models import ChecklistTemplate, JobType, TemplateItem, UserProfile
from cleanswift.profile_cache import ProfileCache


def test_empty_cache_returns_none(tmp_path: Path) -> None:
    assert ProfileCache(tmp_path / "profile.json").get() is None


def test_profile_round_trips_through_file(tmp_path: Path) -> None:
    cache = ProfileCache(tmp_path / "nested" / "profile.json")
    profile = UserProfile(
        company_name="CleanSwift",
        company_address="1 Main St",
        avatar="data:image/png;base64,AAAA",
        show_logo_on_invoice=True,
        job_types=[JobType("j1", "Standard", 45.0)],
        checklist_templates=[ChecklistTemplate("t1", "Move out", [TemplateItem("i1", "Oven")])],
    )

    cache.set(profile)

    assert ProfileCache(cache.path).get() == profile


def test_unreadable_cache_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "profile.json"
    path.write_text("{broken", encoding="utf-8")

    assert ProfileCache(path).get() is None


def test_clear_removes_file(tmp_path: Path) -> None:
    cache = ProfileCache(tmp_path / "profile.json")
    cache.set(UserProfile(company_name="CleanSwift"))

    cache.clear()
    cache.clear()

    assert not cache.path.exists()
    assert cache.get() is None
