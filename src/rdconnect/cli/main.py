"""CLI application using Typer for the R&D Connect client."""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..app import ConnectApp
from ..core.models import (
    CollaborationRequest,
    CollaborationStatus,
    CreateProfileData,
    LoginData,
    RegisterData,
)
from ..exceptions import RDConnectError
from ..utils.logging import get_logger

T = TypeVar("T")

app = typer.Typer(
    name="rdc",
    help="R&D Connect - researcher collaboration client",
    add_completion=False,
)
collab_app = typer.Typer(help="Send and answer collaboration requests.")
researchers_app = typer.Typer(help="Browse and publish researcher profiles.")
app.add_typer(collab_app, name="collab")
app.add_typer(researchers_app, name="researchers")

console = Console()
logger = get_logger(__name__)

STATUS_STYLES = {
    CollaborationStatus.PENDING: "yellow",
    CollaborationStatus.ACCEPTED: "green",
    CollaborationStatus.REJECTED: "red",
}


def _make_app() -> ConnectApp:
    return ConnectApp()


def _run(
    action: Callable[[ConnectApp], Awaitable[T]],
    require_login: bool = True,
    boot: bool = True,
) -> T:
    """Run ``action`` against a client, booted unless ``boot`` is False, and map client errors to exit code 1."""

    async def _main() -> T:
        connect = _make_app()
        try:
            if boot:
                await connect.session.boot()
            if require_login and not connect.session.is_authenticated:
                console.print("[red]Not logged in. Run 'rdc login' first.[/red]")
                raise typer.Exit(1)
            return await action(connect)
        finally:
            await connect.close()

    try:
        return asyncio.run(_main())
    except RDConnectError as e:
        logger.debug(f"Command failed: {e!r}")
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid input: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(1)


def _requests_table(title: str, requests: List[CollaborationRequest], sent: bool) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Researcher" if sent else "From")
    table.add_column("Message")
    table.add_column("Status")
    table.add_column("Created")
    for r in requests:
        who = (r.to_researcher_name or f"Researcher #{r.to_researcher}") if sent else (
            r.from_user_username or f"User #{r.from_user}"
        )
        style = STATUS_STYLES[r.status]
        table.add_row(
            str(r.id),
            who,
            r.message,
            f"[{style}]{r.status.value}[/{style}]",
            r.created_at.strftime("%B %d, %Y"),
        )
    return table


@app.command()
def login(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Log in and store the credential pair locally."""

    async def action(connect: ConnectApp):
        return await connect.session.login(LoginData(username=username, password=password))

    identity = _run(action, require_login=False)
    console.print(f"[bold green]✓ Logged in as {identity.username}[/bold green]")


@app.command()
def register(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True),
    researcher: bool = typer.Option(False, "--researcher/--no-researcher", help="Register as a researcher"),
) -> None:
    """Create an account and log in with it."""

    async def action(connect: ConnectApp):
        data = RegisterData(username=username, email=email, password=password, is_researcher=researcher)
        return await connect.session.register(data)

    identity = _run(action, require_login=False)
    console.print(f"[bold green]✓ Registered and logged in as {identity.username}[/bold green]")


@app.command()
def logout() -> None:
    """Forget the stored credentials."""

    async def action(connect: ConnectApp):
        connect.session.logout()

    _run(action, require_login=False, boot=False)
    console.print("Logged out")


@app.command()
def whoami() -> None:
    """Show the current account."""

    async def action(connect: ConnectApp):
        return connect.session.identity

    identity = _run(action)
    role = "researcher" if identity.is_researcher else "member"
    console.print(f"{identity.username} <{identity.email}> (id {identity.id}, {role})")


@app.command("delete-account")
def delete_account(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete the account on the server and log out."""
    if not yes:
        typer.confirm("Permanently delete your account?", abort=True)

    async def action(connect: ConnectApp):
        await connect.session.delete_account()

    _run(action)
    console.print("[bold]Account deleted[/bold]")


@collab_app.command("send")
def collab_send(
    researcher_id: int = typer.Argument(..., help="Researcher to contact"),
    message: str = typer.Option(..., "--message", "-m", help="Message to the researcher"),
) -> None:
    """Send a collaboration request."""

    async def action(connect: ConnectApp):
        return await connect.collaboration.send(researcher_id, message)

    request = _run(action)
    console.print(f"[green]✓ Request {request.id} sent ({request.status.value})[/green]")


@collab_app.command("sent")
def collab_sent() -> None:
    """List requests you have sent."""

    async def action(connect: ConnectApp):
        return await connect.collaboration.list_sent()

    requests = _run(action)
    if not requests:
        console.print("[yellow]No sent requests[/yellow]")
        return
    console.print(_requests_table("Sent Requests", requests, sent=True))


@collab_app.command("received")
def collab_received() -> None:
    """List requests addressed to you (researchers only)."""

    async def action(connect: ConnectApp):
        return connect.session.is_researcher, await connect.collaboration.list_received()

    is_researcher, requests = _run(action)
    if not is_researcher:
        console.print("[yellow]Only researcher accounts receive collaboration requests[/yellow]")
        return
    if not requests:
        console.print("[yellow]No received requests[/yellow]")
        return
    console.print(_requests_table("Received Requests", requests, sent=False))


def _answer(request_id: int, status: CollaborationStatus) -> None:
    async def action(connect: ConnectApp):
        # Load the inbox first so a request already answered is refused locally
        await connect.collaboration.list_received()
        return await connect.collaboration.update_status(request_id, status)

    request = _run(action)
    console.print(f"Collaboration request {request.id} has been {request.status.value}.")


@collab_app.command("accept")
def collab_accept(request_id: int = typer.Argument(...)) -> None:
    """Accept a pending request."""
    _answer(request_id, CollaborationStatus.ACCEPTED)


@collab_app.command("reject")
def collab_reject(request_id: int = typer.Argument(...)) -> None:
    """Reject a pending request."""
    _answer(request_id, CollaborationStatus.REJECTED)


@researchers_app.command("list")
def researchers_list() -> None:
    """List researcher profiles."""

    async def action(connect: ConnectApp):
        return await connect.researchers.list_researchers()

    profiles = _run(action, require_login=False)
    table = Table(title="Researchers")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Institution")
    table.add_column("Qualifications")
    for p in profiles:
        table.add_row(str(p.id), p.full_name, p.institution, p.qualifications)
    console.print(table)


@researchers_app.command("show")
def researchers_show(researcher_id: int = typer.Argument(...)) -> None:
    """Show one researcher profile."""

    async def action(connect: ConnectApp):
        return await connect.researchers.get_researcher(researcher_id)

    p = _run(action, require_login=False)
    console.print(f"[bold]{p.full_name}[/bold] ({p.institution})")
    console.print(p.qualifications)
    console.print(f"Contact: {p.contact_email}")
    if p.bio:
        console.print(p.bio)
    for paper in p.papers:
        console.print(f"  • {paper.title}")


@researchers_app.command("create")
def researchers_create(
    full_name: str = typer.Option(..., "--name", prompt=True),
    qualifications: str = typer.Option(..., "--qualifications", prompt=True),
    institution: str = typer.Option(..., "--institution", prompt=True),
    contact_email: str = typer.Option(..., "--contact-email", prompt=True),
    bio: str = typer.Option("", "--bio"),
    photo: Optional[Path] = typer.Option(None, "--photo", exists=True, dir_okay=False),
) -> None:
    """Publish your researcher profile (researcher accounts only)."""

    async def action(connect: ConnectApp):
        data = CreateProfileData(
            full_name=full_name,
            qualifications=qualifications,
            institution=institution,
            contact_email=contact_email,
            bio=bio,
        )
        return await connect.researchers.create_profile(data, photo=photo)

    profile = _run(action)
    console.print(f"[green]✓ Profile {profile.id} created[/green]")


if __name__ == "__main__":
    app()
