"""G-Club CLI tool (gclubctl)."""

import typer

app = typer.Typer(name="gclubctl", help="G-Club CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


@db_app.command("create")
def db_create():
    """Create all tables that don't exist yet."""
    import gclub.models  # noqa: F401
    from gclub.db.base import Base
    from gclub.db.session import engine

    Base.metadata.create_all(bind=engine)
    typer.echo("✅ Tables created (or already exist)")


@db_app.command("seed")
def db_seed():
    """Seed roles, permissions, super-admin, and channels."""
    from gclub.db.session import SessionLocal
    from gclub.db.seeds.seed_roles import seed_roles
    from gclub.db.seeds.seed_super_admin import seed_super_admin
    from gclub.db.seeds.seed_channels import seed_channels

    db = SessionLocal()
    try:
        seed_roles(db)
        seed_super_admin(db)
        seed_channels(db)
    finally:
        db.close()
    typer.echo("✅ All seeds applied")


@db_app.command("reset")
def db_reset():
    """Drop and recreate every table (DANGER)."""
    confirm = typer.confirm("⚠️  This will DROP every G-Club table. Continue?")
    if not confirm:
        raise typer.Abort()
    import gclub.models  # noqa: F401
    from gclub.db.base import Base
    from gclub.db.session import engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    typer.echo("✅ Database reset")


@app.command("status-update")
def status_update():
    """Run the post status sweep and time-waiting sweep in-process."""
    from gclub.db.session import SessionLocal
    from gclub.services.status_service import status_service

    db = SessionLocal()
    try:
        posts = status_service.update_post_status(db)
        waiting = status_service.promote_time_waiting(db)
    finally:
        db.close()
    typer.echo(
        f"  in progress: {posts['updated_to_in_progress']}, "
        f"completed: {posts['updated_to_completed']}, "
        f"waiting canceled: {posts['canceled_waiting']}, "
        f"time-waiting promoted: {waiting['promoted_count']}"
    )


@app.command("cron")
def trigger_cron(
    job: str = typer.Argument(..., help="update-post-status or promote-time-waiting"),
    base_url: str = typer.Option("http://localhost:8000", help="API base URL"),
):
    """Trigger a cron endpoint on a running server."""
    import httpx
    from gclub.core.config import settings

    methods = {"update-post-status": "GET", "promote-time-waiting": "POST"}
    if job not in methods:
        raise typer.BadParameter(f"Unknown job '{job}'")
    headers = {"Authorization": f"Bearer {settings.CRON_SECRET}"} if settings.CRON_SECRET else {}
    resp = httpx.request(
        methods[job],
        f"{base_url}/api/cron/{job}",
        headers=headers,
        timeout=settings.STATUS_UPDATE_TIMEOUT_SECONDS + 5,
    )
    typer.echo(resp.json())


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("gclub.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
