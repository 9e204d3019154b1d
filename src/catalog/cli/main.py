"""Operator CLI for the catalog API.

Covers the chores the HTTP surface deliberately does not expose: creating
the schema, provisioning admins, managing the IP blocklist and minting
tokens for local testing.
"""

import typer
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.exc import IntegrityError

from src.catalog.api.http.app_data import build_key_value_stores
from src.catalog.api.http.middleware.limiter import blocklist_key
from src.catalog.core.security import Role, hash_password
from src.catalog.core.services import DbSessionService, JwtService, RedisService
from src.catalog.entities.core.user import User, UserRepository
from src.catalog.runtime.context import get_config
from src.catalog.runtime.init_db import init_db

from .utils import console, run_async

app = typer.Typer(
    name="catalog",
    help="Catalog API operator commands",
    rich_markup_mode="rich",
)


@app.command("init-db")
def init_db_command() -> None:
    """Create all database tables."""
    config = get_config()
    init_db(config)
    console.print(
        Panel.fit(
            f"[bold green]Tables created[/bold green] in {config.database.url}",
            border_style="green",
        )
    )


@app.command("create-user")
def create_user(
    email: str = typer.Argument(..., help="Login email address"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True
    ),
    role: Role = typer.Option(Role.USER, help="Authorization role"),
) -> None:
    """Create a user account, e.g. the first admin."""
    if len(password) < 6:
        console.print("[red]❌ Password must be at least 6 characters[/red]")
        raise typer.Exit(1)

    db_service = DbSessionService(get_config())
    try:
        with db_service.session_scope() as session:
            user = UserRepository(session).create(
                User(email=email, password_hash=hash_password(password), role=role)
            )
    except IntegrityError:
        console.print(f"[red]❌ A user with email {email} already exists[/red]")
        raise typer.Exit(1) from None
    finally:
        db_service.dispose()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Role", style="yellow")
    table.add_row(user.id, user.email, str(user.role))
    console.print(table)


async def _set_blocked(ip: str, ttl: int | None, blocked: bool) -> bool:
    config = get_config()
    redis_service = RedisService(config)
    store, _ = build_key_value_stores(config, redis_service)
    try:
        if redis_service.get_client() is None:
            console.print(
                "[yellow]⚠️  Redis is not configured; the blocklist lives in each "
                "API process and this change will not reach it[/yellow]"
            )
        if blocked:
            await store.set(blocklist_key(ip), True, ttl)
            return True
        return await store.delete(blocklist_key(ip))
    finally:
        await redis_service.close()


@app.command("block-ip")
def block_ip(
    ip: str = typer.Argument(..., help="Client address to deny"),
    ttl: int | None = typer.Option(None, help="Seconds until the block lapses"),
) -> None:
    """Deny every request from an address."""
    run_async(_set_blocked(ip, ttl, blocked=True))
    lifetime = f"for {ttl}s" if ttl else "until removed"
    console.print(f"[green]✅ Blocked {ip} {lifetime}[/green]")


@app.command("unblock-ip")
def unblock_ip(ip: str = typer.Argument(..., help="Client address to allow again")) -> None:
    """Remove an address from the blocklist."""
    if run_async(_set_blocked(ip, None, blocked=False)):
        console.print(f"[green]✅ Unblocked {ip}[/green]")
    else:
        console.print(f"[yellow]{ip} was not blocked[/yellow]")


@app.command("issue-token")
def issue_token(
    email: str = typer.Argument(..., help="Email of an existing user"),
    expires_in: int | None = typer.Option(None, help="Lifetime in seconds"),
) -> None:
    """Print a bearer token for a user (local testing)."""
    config = get_config()
    db_service = DbSessionService(config)
    try:
        with db_service.session_scope() as session:
            user = UserRepository(session).get_by_email(email)
    finally:
        db_service.dispose()

    if user is None:
        console.print(f"[red]❌ No user with email {email}[/red]")
        raise typer.Exit(1)

    issued = JwtService(config.jwt).issue(
        user.id, role=str(user.role), expires_in_seconds=expires_in
    )
    console.print(f"[dim]expires {issued.expires_at.isoformat()}[/dim]")
    typer.echo(f"Bearer {issued.token}")


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, help="Host to bind; defaults to app.host"),
    port: int | None = typer.Option(None, help="Port to bind; defaults to app.port"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "src.catalog.api.http.app:app",
        host=host or config.app.host,
        port=port or config.app.port,
        reload=reload,
        access_log=False,
    )


if __name__ == "__main__":
    app()
