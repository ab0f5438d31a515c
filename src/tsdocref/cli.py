#!/usr/bin/env python3
import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from pydantic_settings import SettingsConfigDict

from tsdocref.logger import logger, setup_logging
from tsdocref.models import dump_modules
from tsdocref.settings import TypeSpecSettings
from tsdocref.spec import TypeSpec

DEFAULT_ENV_PREFIX = "TSDOCREF_"


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    toml_file: Optional[str] = None,
    json_file: Optional[str] = None,
    **kwargs,
) -> TypeSpecSettings:
    config_dict = SettingsConfigDict(
        env_prefix=env_prefix if env_prefix is not None else DEFAULT_ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=env_file,
        toml_file=toml_file,
        json_file=json_file,
    )

    class Settings(TypeSpecSettings):
        model_config = config_dict

    return Settings(**kwargs)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "spec_path",
    type=click.Path(
        exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path
    ),
)
@click.option(
    "--ref",
    type=str,
    default=None,
    help="Print only the record stored under this fully-qualified reference.",
)
@click.option(
    "--module",
    "module_name",
    type=str,
    default=None,
    help="Print only the module with this name.",
)
@click.option(
    "--cache-backend",
    type=click.Choice(["memory", "sqlite", "duckdb"]),
    default=None,
    help="Cache backend (default: from settings, else memory).",
)
@click.option(
    "--cache-path",
    type=str,
    default=None,
    help="Database file for the sqlite/duckdb cache backend.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging of dropped type shapes and cache activity.",
)
def main(
    spec_path: Path,
    ref: Optional[str],
    module_name: Optional[str],
    cache_backend: Optional[str],
    cache_path: Optional[str],
    debug: bool,
) -> None:
    """
    Resolve a reflection JSON document into per-module signatures and print them as JSON.
    """
    setup_logging(debug)

    settings = load_settings(spec_path=str(spec_path.resolve()))
    if cache_backend is not None:
        settings.cache.backend = cache_backend
    if cache_path is not None:
        settings.cache.path = cache_path

    async def _run() -> int:
        spec = TypeSpec(settings)
        try:
            if ref is not None:
                found = await spec.get_type_spec(ref)
                if found is None:
                    click.echo(f"Unknown reference: {ref}", err=True)
                    return 1
                click.echo(json.dumps(found.to_dict(), indent=2))
                return 0

            modules = await spec.get_modules()
            if module_name is not None:
                modules = [m for m in modules if m.name == module_name]
            logger.debug("cli_output", modules=len(modules))
            click.echo(dump_modules(modules, indent=2))
            return 0
        finally:
            spec.close()

    exit_code = asyncio.run(_run())
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
