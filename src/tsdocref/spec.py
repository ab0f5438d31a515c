import json
from typing import List, Optional, Union

from tsdocref.cache import CacheBackend, build_cache_backend, cache_full_process
from tsdocref.helpers import read_json_file
from tsdocref.logger import logger
from tsdocref.models import ModuleTypes, ObjectType, Signature, UnionType
from tsdocref.modules import parse_type_spec
from tsdocref.settings import TypeSpecSettings


def _empty_placeholder(filename: str) -> str:
    return json.dumps([])


class TypeSpec:
    """
    Resolved view over one reflection document.

    Resolution runs lazily on first access and again whenever the spec file's
    modification time changes.
    """

    def __init__(
        self,
        settings: TypeSpecSettings,
        backend: Optional[CacheBackend] = None,
    ):
        if not settings.spec_path:
            raise ValueError("settings.spec_path is required.")

        self.settings = settings
        self._backend = (
            backend
            if backend is not None
            else build_cache_backend(settings.cache.backend, settings.cache.path)
        )
        self._parse = cache_full_process(
            self._parse_type_spec,
            settings.spec_path,
            _empty_placeholder,
            self._backend,
        )

    def _parse_type_spec(self) -> List[ModuleTypes]:
        return parse_type_spec(read_json_file(self.settings.spec_path))

    async def get_modules(self) -> List[ModuleTypes]:
        return await self._parse()

    async def get_type_spec(
        self, ref: str
    ) -> Optional[Union[Signature, ObjectType, UnionType]]:
        """
        Return the signature stored under the fully-qualified *ref*, or the
        named type of that name, or ``None`` when no module knows it.
        """
        modules = await self._parse()

        for mod in modules:
            if ref in mod.methods:
                return mod.methods[ref]
        for mod in modules:
            if ref in mod.types:
                return mod.types[ref]

        logger.debug("Reference not found in type spec", ref=ref)
        return None

    def close(self) -> None:
        self._backend.close()
