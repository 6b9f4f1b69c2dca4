"""Entry point: python -m sdkgen

Fetches the OpenAPI document, generates <output>/client.py and
<output>/__init__.py.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .codegen import generate
from .config import GeneratorConfig
from .context_builder import build_context
from .loader import SpecLoadError, fetch_spec, load_spec, save_spec


@click.command()
@click.option("--url", default=None, help="URL of the OpenAPI document (default: SDKGEN_SPEC_URL or the v0 API).")
@click.option("--spec-file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="Read the document from a local .json/.yaml file instead of fetching it.")
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), default=None, help="Output directory for the generated package.")
@click.option("--base-url", default=None, help="Default base URL baked into the client (default: first server in the document).")
@click.option("--api-key-env", default=None, help="Environment variable the client reads its API key from.")
@click.option("--streaming/--no-streaming", default=True, help="Emit streaming variants for operations with a responseMode field.")
@click.option("--save-spec", "save_path", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Also save the fetched document to this path.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    url: str | None,
    spec_file: Path | None,
    output: Path | None,
    base_url: str | None,
    api_key_env: str | None,
    streaming: bool,
    save_path: Path | None,
    verbose: bool,
) -> None:
    """Generate a typed async Python client from an OpenAPI document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = GeneratorConfig.from_env().override(
        spec_url=url,
        output_dir=output,
        base_url=base_url,
        api_key_env=api_key_env,
        streaming=streaming,
    )

    try:
        spec = load_spec(spec_file) if spec_file else fetch_spec(config.spec_url)
    except SpecLoadError as exc:
        raise click.ClickException(str(exc)) from exc

    if save_path is not None:
        save_spec(spec, save_path)

    context = build_context(
        spec,
        base_url=config.base_url,
        api_key_env=config.api_key_env,
        streaming=config.streaming,
    )
    generate(context, config.output_dir)
    click.echo(f"Generated {config.output_dir / 'client.py'} ({context['operation_count']} operations)")


if __name__ == "__main__":
    main()
