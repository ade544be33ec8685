from __future__ import annotations

from importlib import import_module
from typing import Any

import pytest


def test_dunder_all_exports() -> None:
    module = import_module("projectmover")
    exported = set(module.__all__)
    expected = {
        "ProjectBoard",
        "move_issue",
        "run",
        "MoverInputs",
        "ProjectNotFoundError",
        "__version__",
    }
    assert expected <= exported
    for name in exported:
        assert hasattr(module, name)


def test_module_main_run_invokes_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    module = import_module("projectmover.__main__")
    called: dict[str, Any] = {}

    def fake_main(argv: Any) -> int:
        called["argv"] = argv
        return 123

    monkeypatch.setattr(module, "main", fake_main)

    assert module.run() == 123
    assert called["argv"] is None
