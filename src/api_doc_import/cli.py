"""CLI entry point for api-doc-import."""

import asyncio
import json
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from api_doc_import.config import get_settings
from api_doc_import.errors import DocImportError
from api_doc_import.log import configure_logging
from api_doc_import.outputs import JsonEnvironmentStore, JsonSessionWriter
from api_doc_import.parser.detect import detect_file_type, validate_file_type_support
from api_doc_import.pipeline import ImportResult, process_import_file
from api_doc_import.replay.auth import AuthConfig, parse_auth_config
from api_doc_import.replay.environment import (
    convert_to_store_variables,
    create_environment_variables,
    unique_environment_name,
    validate_environment_creation,
)
from api_doc_import.replay.sessions import create_sessions, prepare_sessions

AUTH_TYPES = ["none", "apikey", "bearer", "basic", "custom", "detected"]


def _import(doc_path: Path) -> ImportResult:
    """Read and import a document, turning pipeline errors into CLI errors."""
    text = doc_path.read_text(encoding="utf-8")
    try:
        return process_import_file(text, doc_path.name)
    except DocImportError as e:
        raise click.ClickException(str(e)) from e


def _dump(data: dict, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def _build_auth(auth_type: str, **fields) -> AuthConfig:
    data = {"type": auth_type, **{k: v for k, v in fields.items() if v is not None}}
    try:
        return parse_auth_config(data)
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][-1]) for err in e.errors())
        raise click.UsageError(f"--auth-type {auth_type} requires: {missing}") from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Doc Import: turn Postman, OpenAPI and environment exports into replay sessions."""
    settings = get_settings()
    configure_logging(level="DEBUG" if verbose else settings.log_level.upper(), log_file=settings.log_file)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def detect(doc_path: Path):
    """Classify a file and report whether it can be imported."""
    result = detect_file_type(doc_path.read_text(encoding="utf-8"), doc_path.name)
    support = validate_file_type_support(result.type, doc_path.name)
    click.echo(f"Type: {result.type} (confidence {result.confidence:.2f})")
    click.echo(f"Details: {result.details}")
    click.echo(f"Supported: {'yes' if support.supported else 'no'} - {support.message}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the result to a file instead of stdout.")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "yaml"]), help="Output format.")
def parse(doc_path: Path, output: Path | None, fmt: str):
    """Parse a document and dump the canonical requests or variables."""
    result = _import(doc_path)
    text = _dump(result.model_dump(mode="json", exclude_none=True), fmt)

    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(result.message)
    click.echo(f"Saved to {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output directory for session files.")
@click.option("--auth-type", default="none", type=click.Choice(AUTH_TYPES), help="Credential to apply to every request.")
@click.option("--key", default=None, help="API key header name (apikey).")
@click.option("--value", default=None, help="API key or custom header value (apikey, custom).")
@click.option("--token", default=None, help="Bearer token (bearer).")
@click.option("--username", default=None, help="Username (basic).")
@click.option("--password", default=None, help="Password (basic).")
@click.option("--header", default=None, help="Header name (custom).")
@click.option("--scheme", default=None, help="Detected scheme name (detected).")
@click.option("--hostname", default=None, help="Replace the host of every request.")
@click.option("--batch-size", default=None, type=int, help="Concurrent session creations per batch.")
def sessions(
    doc_path: Path,
    output: Path,
    auth_type: str,
    key: str | None,
    value: str | None,
    token: str | None,
    username: str | None,
    password: str | None,
    header: str | None,
    scheme: str | None,
    hostname: str | None,
    batch_size: int | None,
):
    """Full pipeline: parse doc -> apply auth -> build request specs -> write sessions."""
    settings = get_settings()

    # Step 1: Parse
    click.echo(f"Parsing {doc_path}...")
    result = _import(doc_path)
    if result.file_type == "environment":
        raise click.UsageError("Environment files hold variables, not requests. Use the env command.")
    click.echo(result.message)
    if result.authentication and result.authentication.has_auth:
        click.echo(f"Authentication detected: {result.authentication.description}")

    # Step 2: Apply auth and resolve
    auth = _build_auth(
        auth_type,
        key=key, value=value, token=token, username=username,
        password=password, header=header, scheme=scheme, hostname=hostname,
    )
    processed = prepare_sessions(result.requests, auth)
    skipped = result.session_count - len(processed)
    if skipped:
        click.echo(f"Skipped {skipped} requests with unresolvable URLs.")

    # Step 3: Create sessions
    writer = JsonSessionWriter(output)
    batch = asyncio.run(
        create_sessions(
            processed,
            result.collection_name or doc_path.stem,
            writer,
            batch_size=batch_size or settings.batch_size,
            batch_pause=settings.batch_pause,
        )
    )
    for outcome in batch.outcomes:
        if not outcome.created:
            click.echo(f"  Failed {outcome.session_name}: {outcome.error}")
    click.echo(batch.message)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output directory for environment files.")
@click.option("--name", default=None, help="Target environment name (defaults to the exported name).")
def env(doc_path: Path, output: Path, name: str | None):
    """Import a Postman environment's enabled variables into an environment file."""
    result = _import(doc_path)
    if result.file_type != "environment":
        raise click.UsageError(f"{doc_path.name} is a {result.file_type} file, not an environment.")
    click.echo(result.message)

    variables = convert_to_store_variables(result.variables)
    store = JsonEnvironmentStore(output)
    target = unique_environment_name(name or result.environment_name, store.existing_names())

    validation = validate_environment_creation(variables, target)
    if not validation.valid:
        raise click.ClickException(f"Validation failed: {validation.error}")

    created = asyncio.run(create_environment_variables(store, variables, target))
    click.echo(f"{created.message} ({target})")
    if not created.success:
        raise click.ClickException(created.error or created.message)
