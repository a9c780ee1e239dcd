from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from jobboard.cache.keys import APPLICANTS_LIST, JOBS_LIST
from jobboard.models.user import UserType


def _load_script():
    path = Path(__file__).resolve().parents[1] / "scripts" / "create_admin.py"
    spec = importlib.util.spec_from_file_location("create_admin", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_promoting_applicant_refreshes_applicant_listing(services, settings, cache, make_user) -> None:
    create_admin = _load_script()
    user = make_user(email="promote@example.com")
    assert services.users.get_all_applicants(1, 10).total == 1
    generation = cache.generation(APPLICANTS_LIST)

    assert create_admin.main(["--email", "promote@example.com"], settings=settings, cache=cache) == 0

    assert cache.generation(APPLICANTS_LIST) == generation + 1
    assert cache.generation(JOBS_LIST) >= 1
    assert services.users.get_all_applicants(1, 10).total == 0
    assert services.users.get_user(user.id).user_type == UserType.ADMIN


def test_create_admin_with_password(services, settings, cache, capsys) -> None:
    create_admin = _load_script()

    create_admin.main(["--email", "boss@example.com", "--password", "BossPass123"], settings=settings, cache=cache)

    assert "created admin" in capsys.readouterr().out
    assert services.users.validate_login("boss@example.com", "BossPass123").user_type == UserType.ADMIN


def test_create_admin_rejects_overlong_password(settings, cache) -> None:
    create_admin = _load_script()
    with pytest.raises(SystemExit):
        create_admin.main(["--email", "boss@example.com", "--password", "x" * 73], settings=settings, cache=cache)
