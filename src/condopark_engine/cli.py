"""Typer CLI for CondoPark-Engine."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="condopark", help="CondoPark-Engine: condominium parking reservations")
console = Console()


async def _with_db(work):
    """Run ``work(db)`` against an initialized database, then close it."""
    from condopark_engine.deps import get_db

    db = get_db()
    await db.init()
    try:
        await db.create_all()
        return await work(db)
    finally:
        await db.close()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the CondoPark-Engine API server."""
    import uvicorn
    from condopark_engine.app import create_app

    console.print(f"[bold green]Starting CondoPark-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("create-tenant")
def create_tenant(
    name: str = typer.Argument(..., help="Community display name"),
    code: Optional[str] = typer.Option(None, help="Community code (generated if omitted)"),
):
    """Register a community and print its code."""
    from condopark_engine.common.exceptions import CondoParkError
    from condopark_engine.deps import get_tenant_service

    async def work(db):
        async with db.get_session() as session:
            return await get_tenant_service().create_tenant(session, name=name, code=code)

    try:
        tenant = asyncio.run(_with_db(work))
    except CondoParkError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]Created[/bold green] {tenant.name}")
    console.print(f"  Code: [bold]{tenant.code}[/bold]")


@app.command()
def rotate(
    old_code: str = typer.Argument(..., help="Current community code"),
    new_code: Optional[str] = typer.Argument(None, help="New code (generated if omitted)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changing anything"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    rollback_file: Optional[Path] = typer.Option(
        None, "--rollback-file", help="Write the rollback SQL to this file"
    ),
):
    """Rotate a community code. All residents must sign in again afterwards."""
    from condopark_engine.common.exceptions import CondoParkError
    from condopark_engine.deps import get_rotation_manager

    async def preview(db):
        return await get_rotation_manager().rotate(
            old_code, new_code=new_code, dry_run=True, actor="cli"
        )

    async def apply(db):
        return await get_rotation_manager().rotate(
            old_code, new_code=plan.new_code, dry_run=False, actor="cli"
        )

    try:
        plan = asyncio.run(_with_db(preview))
    except CondoParkError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)

    _print_report(plan)

    if dry_run:
        console.print("[yellow]Dry run: no changes made.[/yellow]")
        console.print(plan.rollback_sql)
        return

    if not yes:
        console.print(
            "[bold yellow]Every resident of this community will be signed out "
            "and must use the new code.[/bold yellow]"
        )
        if not typer.confirm("Proceed with rotation?"):
            console.print("Rotation cancelled.")
            raise typer.Exit(1)

    try:
        report = asyncio.run(_with_db(apply))
    except CondoParkError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)

    console.print(f"[bold green]Rotated[/bold green] {report.old_code} -> {report.new_code}")
    if rollback_file is not None:
        rollback_file.write_text(report.rollback_sql)
        console.print(f"Rollback SQL written to {rollback_file}")
    else:
        console.print(report.rollback_sql)


def _print_report(report) -> None:
    table = Table(title="Community code rotation")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Old code", report.old_code)
    table.add_row("New code", report.new_code)
    table.add_row("Principals", str(report.principals))
    table.add_row("Slots", str(report.slots))
    table.add_row("Bookings", str(report.bookings))
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check CondoPark-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
