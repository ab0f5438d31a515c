import os
from pathlib import Path

import pytest

from tsdocref.cache import MemoryCacheBackend
from tsdocref.models import ModuleTypes, ObjectType, Signature, dump_modules
from tsdocref.settings import CacheSettings, TypeSpecSettings
from tsdocref.spec import TypeSpec

SAMPLES_DIR = Path(__file__).parent / "samples"
SAMPLE_SPEC = SAMPLES_DIR / "combined.json"


def _make_spec(**kwargs) -> TypeSpec:
    settings = TypeSpecSettings(spec_path=str(SAMPLE_SPEC), **kwargs)
    return TypeSpec(settings)


@pytest.mark.asyncio
async def test_get_type_spec_returns_signature():
    spec = _make_spec()
    try:
        sig = await spec.get_type_spec("realtime-js.RealtimeClient.constructor")

        assert isinstance(sig, Signature)
        assert sig.to_dict() == {
            "name": "realtime-js.RealtimeClient.constructor",
            "params": [
                {
                    "name": "endPoint",
                    "comment": {"shortText": "The websocket endpoint."},
                    "type": {"type": "intrinsic", "name": "string"},
                }
            ],
        }
    finally:
        spec.close()


@pytest.mark.asyncio
async def test_get_type_spec_unknown_reference():
    spec = _make_spec()
    try:
        assert await spec.get_type_spec("realtime-js.RealtimeChannel.constructor") is None
        assert await spec.get_type_spec("nope") is None
    finally:
        spec.close()


@pytest.mark.asyncio
async def test_get_type_spec_falls_back_to_named_types():
    backend = MemoryCacheBackend()
    cached = [
        ModuleTypes(
            name="pkg",
            types={"Options": ObjectType(name="Options", properties=[])},
        )
    ]
    backend.set(str(SAMPLE_SPEC), os.stat(SAMPLE_SPEC).st_mtime_ns, dump_modules(cached))

    spec = TypeSpec(TypeSpecSettings(spec_path=str(SAMPLE_SPEC)), backend=backend)

    found = await spec.get_type_spec("Options")
    assert isinstance(found, ObjectType)
    assert found.name == "Options"


@pytest.mark.asyncio
async def test_modules_are_resolved_once():
    spec = _make_spec()
    try:
        first = await spec.get_modules()
        second = await spec.get_modules()

        assert first is second
        assert [m.name for m in first] == ["storage-js", "realtime-js"]
    finally:
        spec.close()


@pytest.mark.asyncio
async def test_sqlite_backend_from_settings(tmp_path):
    db_path = tmp_path / "types.sqlite"
    spec = _make_spec(cache=CacheSettings(backend="sqlite", path=str(db_path)))
    try:
        sig = await spec.get_type_spec("storage-js.StorageClient.constructor")
        assert sig is not None
        assert db_path.exists()
    finally:
        spec.close()


def test_spec_path_is_required():
    with pytest.raises(ValueError):
        TypeSpec(TypeSpecSettings())


def test_unknown_backend_in_settings():
    with pytest.raises(ValueError):
        _make_spec(cache=CacheSettings(backend="redis"))
