import json
import logging
from typing import Any, Optional

import typer

from polymeta.app import MetadataService
from polymeta.database import MetaQuery, OwnerRef

app = typer.Typer(help="Read and write polymorphic metadata from the command line.", no_args_is_help=True)


def _parse_value(raw: str) -> Any:
    """Values are JSON; anything that does not parse is taken as a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_condition(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        msg = f"Expected KEY=VALUE, got {raw!r}"
        raise typer.BadParameter(msg)
    return key, _parse_value(value)


def _echo(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _service(ctx: typer.Context) -> MetadataService:
    return ctx.obj["service"]


@app.callback()
def main(
    ctx: typer.Context,
    dsn: Optional[str] = typer.Option(None, "--dsn", help="SQLAlchemy DSN; defaults to the polymeta config."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    database_config = {"metadata_store": {"provider": "sqlite", "dsn": dsn}} if dsn else None
    service = MetadataService(database_config=database_config)
    ctx.obj = {"service": service}
    ctx.call_on_close(service.close)


@app.command()
def health(ctx: typer.Context) -> None:
    _echo(_service(ctx).health())


@app.command("get")
def get_meta(
    ctx: typer.Context,
    owner_type: str,
    owner_id: str,
    key: str,
    default: Optional[str] = typer.Option(None, "--default", help="JSON value printed when the key is missing."),
) -> None:
    owner = OwnerRef(owner_type=owner_type, owner_id=owner_id)
    fallback = _parse_value(default) if default is not None else None
    _echo(_service(ctx).get_meta(owner, key, fallback))


@app.command("set")
def set_meta(ctx: typer.Context, owner_type: str, owner_id: str, key: str, value: str) -> None:
    owner = OwnerRef(owner_type=owner_type, owner_id=owner_id)
    meta = _service(ctx).save_meta(owner, key, _parse_value(value))
    _echo(meta.model_dump(mode="json"))


@app.command("list")
def list_metas(
    ctx: typer.Context,
    owner_type: str,
    owner_id: str,
    keys: Optional[list[str]] = typer.Option(None, "--key", "-k", help="Only these keys (repeatable)."),
) -> None:
    owner = OwnerRef(owner_type=owner_type, owner_id=owner_id)
    _echo(_service(ctx).get_metas(owner, keys or None))


@app.command("delete")
def delete_meta(
    ctx: typer.Context,
    owner_type: str,
    owner_id: str,
    keys: Optional[list[str]] = typer.Argument(None, help="Keys to delete."),
    delete_all: bool = typer.Option(False, "--all", help="Delete every meta of the owner."),
) -> None:
    owner = OwnerRef(owner_type=owner_type, owner_id=owner_id)
    service = _service(ctx)
    if delete_all:
        deleted = service.delete_all_meta(owner)
    elif keys:
        deleted = service.delete_meta(owner, keys)
    else:
        raise typer.BadParameter("Pass one or more keys, or --all")
    _echo({"deleted": deleted})


@app.command()
def find(
    ctx: typer.Context,
    owner_type: str,
    where: Optional[list[str]] = typer.Option(None, "--where", "-w", help="KEY=VALUE, AND-ed (repeatable)."),
    or_where: Optional[list[str]] = typer.Option(None, "--or-where", help="KEY=VALUE, OR-ed (repeatable)."),
    operator: str = typer.Option("=", "--operator", "-o", help="Comparison operator, e.g. '=', '>=', 'like'."),
) -> None:
    query = MetaQuery(owner_type=owner_type)
    try:
        for raw in where or []:
            key, value = _parse_condition(raw)
            query.where(key, value, operator=operator)
        for raw in or_where or []:
            key, value = _parse_condition(raw)
            query.or_where(key, value, operator=operator)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _echo(_service(ctx).find_owner_ids(query))


if __name__ == "__main__":
    app()
