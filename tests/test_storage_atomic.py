from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.storage import FileBlobStore, _write_text


def test_write_text_preserves_original_on_replace_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "save.json"
    _write_text(target, '{"qi": 1}')
    original_contents = target.read_text(encoding="utf8")

    def _boom(src: Path, dst: Path) -> None:
        raise RuntimeError("simulated failure")

    monkeypatch.setattr("cultivation.storage.os.replace", _boom)

    with pytest.raises(RuntimeError):
        _write_text(target, '{"qi": 2}')

    assert target.read_text(encoding="utf8") == original_contents
    leftovers = [p for p in target.parent.iterdir() if p.name != "save.json"]
    assert leftovers == []


def test_file_blob_store_round_trip(tmp_path: Path) -> None:
    store = FileBlobStore(tmp_path / "saves")

    async def scenario() -> tuple[str | None, str | None]:
        await store.set("slot/one", "payload")
        stored = await store.get("slot/one")
        await store.delete("slot/one")
        await store.delete("slot/one")
        return stored, await store.get("slot/one")

    stored, removed = asyncio.run(scenario())

    assert stored == "payload"
    assert removed is None
    assert store.path_for("slot/one").parent == tmp_path / "saves"
    assert "/" not in store.path_for("slot/one").name
