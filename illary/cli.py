"""CLI entry point using Typer."""
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from illary.config import settings
from illary.hotel.pricing import BookingValidationError, total_amount, validate_stay
from illary.models.ontology import get_reservation_status_label, get_status_config
from illary.models.schemas import BookingForm, LoginRequest, ReservationUpdatePayload
from illary.security.guard import AuthGuard, GuardError, GuardState
from illary.security.session import FileTokenStore, SessionContext, TokenStore
from illary.services.api_client import (
    ApiClient, ApiError, AuthenticationError, ServiceUnavailableError, create_http_client
)
from illary.services.auth_service import AuthService
from illary.services.booking_service import BookingService
from illary.services.error_parser import parse_server_error
from illary.services.establishment_service import EstablishmentService
from illary.services.reservation_service import ReservationService
from illary.services.room_service import RoomService, RoomTypeService
from illary.services.stores import ReservationStore, ResourceStore, StoreBusyError
from illary.services.user_service import UserService

app = typer.Typer(
    name="illary",
    help="Hotel reservations from the command line.",
    add_completion=False,
)
admin_app = typer.Typer(help="Administration commands (administrators only).")
app.add_typer(admin_app, name="admin")

console = Console()

RESOURCES = {
    "establishments": (EstablishmentService, "No se pudieron cargar los establecimientos."),
    "rooms": (RoomService, "No se pudieron cargar las habitaciones."),
    "room-types": (RoomTypeService, "No se pudieron cargar los tipos de habitación."),
    "users": (UserService, "No se pudieron cargar los usuarios."),
}


@dataclass
class CliContext:
    """命令共享的连接与令牌存储"""
    http: httpx.Client
    store: TokenStore

    @classmethod
    def default(cls) -> "CliContext":
        return cls(http=create_http_client(), store=FileTokenStore(settings.SESSION_FILE))

    def api(self, token: Optional[str] = None) -> ApiClient:
        return ApiClient(self.http, token=token)

    def session(self) -> SessionContext:
        """读取持久化令牌并解析当前用户"""
        session = SessionContext.from_storage(self.store)
        return AuthService(self.api()).resolve_session(session)


def _money(amount) -> str:
    return f"{settings.CURRENCY_SYMBOL} {amount:.2f}"


def _print_guard(error: GuardError) -> None:
    console.print(f"[red]{error.message}[/red]")
    if error.redirect:
        console.print(f"Redirect: {error.redirect}")


@contextmanager
def handle_errors(ctx: Optional[typer.Context] = None):
    """
    把已知失败转为提示并以非零退出

    传入 ctx 时，API 拒绝令牌（401）会清除本地保存的令牌并提示重新登录。
    """
    try:
        yield
    except GuardError as e:
        _print_guard(e)
        raise typer.Exit(code=1)
    except ServiceUnavailableError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)
    except BookingValidationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        for field_name, message in e.field_errors.items():
            console.print(f"  {field_name}: {message}")
        raise typer.Exit(code=1)
    except ApiError as e:
        if isinstance(e, AuthenticationError) and ctx is not None:
            ctx.obj.store.clear()
            _print_guard(GuardError(GuardState.UNAUTHENTICATED))
            raise typer.Exit(code=1)
        parsed = parse_server_error(e)
        if parsed.general_error:
            console.print(f"[red]Error:[/red] {parsed.general_error}")
        for field_name, message in parsed.field_errors.items():
            console.print(f"  {field_name}: {message}")
        raise typer.Exit(code=1)
    except StoreBusyError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    except ValidationError as e:
        for error in e.errors():
            field_name = ".".join(str(p) for p in error["loc"])
            console.print(f"[red]Error:[/red] {field_name}: {error['msg']}")
        raise typer.Exit(code=1)


def _guarded_session(ctx: typer.Context, require_admin: bool = True) -> SessionContext:
    """解析会话并通过授权闸门"""
    session = ctx.obj.session()
    guard = AuthGuard(session, require_admin=require_admin)
    try:
        guard.check()
    finally:
        guard.close()
    return session


@app.callback()
def main(ctx: typer.Context):
    """Illary hotel client."""
    if ctx.obj is None:
        ctx.obj = CliContext.default()


# ============== 会话 ==============

@app.command()
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--login", "-l", prompt="Correo electrónico", help="Account email"),
    password: str = typer.Option(..., "--password", "-p", prompt="Contraseña", hide_input=True),
):
    """Sign in and store the session token."""
    with handle_errors():
        session = SessionContext(ctx.obj.store)
        result = AuthService(ctx.obj.api()).sign_in(session, LoginRequest(login=email, password=password))
    console.print(f"[green]Bienvenido, {result.user.display_name}[/green]")


@app.command()
def logout(ctx: typer.Context):
    """Sign out and forget the stored token."""
    session = SessionContext.from_storage(ctx.obj.store)
    warning = AuthService(ctx.obj.api()).sign_out(session)
    if warning:
        console.print(f"[yellow]Aviso:[/yellow] {warning}")
    console.print("Sesión cerrada")


@app.command()
def whoami(ctx: typer.Context):
    """Show the signed-in user."""
    with handle_errors(ctx):
        session = ctx.obj.session()
    if not session.is_authenticated:
        console.print("No has iniciado sesión")
        raise typer.Exit(code=1)
    user = session.user
    roles = ", ".join(user.roles) or "-"
    console.print(f"{user.display_name} <{user.login}>  roles: {roles}")


# ============== 客人 ==============

@app.command()
def rooms(ctx: typer.Context, status: Optional[str] = typer.Option(None, "--status", help="Filter by status")):
    """List rooms with their status."""
    with handle_errors(ctx):
        views = RoomService(ctx.obj.api()).list_views(status)

    table = Table(title="Habitaciones")
    table.add_column("ID", justify="right")
    table.add_column("Número")
    table.add_column("Piso", justify="right")
    table.add_column("Capacidad", justify="right")
    table.add_column("Precio/noche", justify="right")
    table.add_column("Estado")
    for room in views:
        table.add_row(str(room.id), room.room_number, str(room.floor), str(room.max_occupancy),
                      _money(room.price_per_night), room.status_label)
    console.print(table)


@app.command()
def quote(
    ctx: typer.Context,
    room_id: int = typer.Argument(..., help="Room id"),
    check_in: str = typer.Argument(..., help="Check-in date (YYYY-MM-DD)"),
    check_out: str = typer.Argument(..., help="Check-out date (YYYY-MM-DD)"),
):
    """Price a stay without booking it."""
    with handle_errors(ctx):
        room = RoomService(ctx.obj.api()).get(room_id)
        result = BookingService(ReservationService(ctx.obj.api())).quote(room, check_in, check_out)
    console.print(f"Habitación {room.room_number}: {result.nights} noche(s) x "
                  f"{_money(result.price_per_night)} = {result.display_total}")


@app.command()
def book(
    ctx: typer.Context,
    room_id: int = typer.Argument(..., help="Room id"),
    check_in: str = typer.Option(..., "--check-in", help="Check-in date (YYYY-MM-DD)"),
    check_out: str = typer.Option(..., "--check-out", help="Check-out date (YYYY-MM-DD)"),
    adults: int = typer.Option(1, "--adults"),
    children: int = typer.Option(0, "--children"),
    requests: str = typer.Option("", "--requests", help="Special requests"),
):
    """Book a room for the signed-in guest."""
    with handle_errors(ctx):
        session = ctx.obj.session()
        api = ctx.obj.api(session.token)
        room = RoomService(api).get(room_id)
        form = BookingForm(check_in_date=check_in, check_out_date=check_out,
                           adults=adults, children=children, special_requests=requests)
        outcome = BookingService(ReservationService(api)).book(session, room, form)

    if not outcome.ok:
        console.print(f"[red]{outcome.notification.message}[/red]")
        for field_name, message in outcome.field_errors.items():
            console.print(f"  {field_name}: {message}")
        raise typer.Exit(code=1)
    console.print(f"[green]{outcome.notification.message}[/green]")


@app.command("my-reservations")
def my_reservations(ctx: typer.Context):
    """List the signed-in guest's reservations."""
    with handle_errors(ctx):
        session = _guarded_session(ctx, require_admin=False)
        store = ReservationStore(ReservationService(ctx.obj.api(session.token)))
        store.load_my()
    if store.state.error:
        console.print(f"[red]{store.state.error}[/red]")
        raise typer.Exit(code=1)
    if not store.items:
        console.print("No tienes reservaciones")
        return

    table = Table(title="Mis reservaciones")
    table.add_column("ID", justify="right")
    table.add_column("Habitación", justify="right")
    table.add_column("Entrada")
    table.add_column("Salida")
    table.add_column("Total", justify="right")
    table.add_column("Estado")
    for r in store.items:
        table.add_row(str(r.id), str(r.room_id), r.check_in_date.isoformat(), r.check_out_date.isoformat(),
                      _money(r.total_amount), get_reservation_status_label(r.status))
    console.print(table)


# ============== 管理端 ==============

def _resource_store(resource: str, api: ApiClient) -> ResourceStore:
    if resource == "reservations":
        return ReservationStore(ReservationService(api))
    if resource not in RESOURCES:
        choices = ", ".join(sorted(list(RESOURCES) + ["reservations"]))
        console.print(f"[red]Error:[/red] recurso desconocido '{resource}' ({choices})")
        raise typer.Exit(code=2)
    service_cls, load_error = RESOURCES[resource]
    return ResourceStore(service_cls(api), load_error)


def _print_items(resource: str, items) -> None:
    table = Table(title=resource)
    table.add_column("ID", justify="right")
    table.add_column("Detalle")
    for item in items:
        if resource == "reservations":
            guest = item.user.full_name if item.kind == "reservation_with_user" else f"#{item.user_id}"
            detail = (f"{guest} | hab. {item.room_id} | {item.check_in_date} -> {item.check_out_date} | "
                      f"{_money(item.total_amount)} | {get_reservation_status_label(item.status)}")
        elif resource == "rooms":
            detail = f"{item.room_number} | {_money(item.price_per_night)} | {get_status_config(item.status).label}"
        elif resource == "users":
            detail = f"{item.full_name} <{item.login}>"
        else:
            detail = item.name
        table.add_row(str(item.id), detail)
    console.print(table)


@admin_app.command("list")
def admin_list(ctx: typer.Context, resource: str = typer.Argument(..., help="establishments, rooms, room-types, reservations or users")):
    """List a resource."""
    with handle_errors(ctx):
        session = _guarded_session(ctx)
        store = _resource_store(resource, ctx.obj.api(session.token))
        if isinstance(store, ReservationStore):
            store.load_all()
        else:
            store.load()
    if store.state.error:
        console.print(f"[red]{store.state.error}[/red]")
        raise typer.Exit(code=1)
    _print_items(resource, store.items)


@admin_app.command("delete")
def admin_delete(
    ctx: typer.Context,
    resource: str = typer.Argument(..., help="establishments, rooms, room-types or reservations"),
    item_id: int = typer.Argument(..., help="Record id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a record."""
    with handle_errors(ctx):
        session = _guarded_session(ctx)
    store = _resource_store(resource, ctx.obj.api(session.token))
    if not yes:
        typer.confirm(f"¿Eliminar {resource} #{item_id}?", abort=True)
    with handle_errors(ctx):
        store.delete(item_id)
    console.print(f"[green]Eliminado {resource} #{item_id}[/green]")


@admin_app.command("update-reservation")
def admin_update_reservation(
    ctx: typer.Context,
    reservation_id: int = typer.Argument(..., help="Reservation id"),
    status: Optional[str] = typer.Option(None, "--status"),
    payment_status: Optional[str] = typer.Option(None, "--payment-status"),
    room_id: Optional[int] = typer.Option(None, "--room-id"),
    check_in: Optional[str] = typer.Option(None, "--check-in"),
    check_out: Optional[str] = typer.Option(None, "--check-out"),
    cancellation_reason: Optional[str] = typer.Option(None, "--reason"),
):
    """Update a reservation; the total follows the room's nightly rate."""
    with handle_errors(ctx):
        session = _guarded_session(ctx)
        api = ctx.obj.api(session.token)
        store = ReservationStore(ReservationService(api))
        store.load_all()
        current = next((r for r in store.items if r.id == reservation_id), None)
        if current is None:
            current = store.service.get(reservation_id)

        payload = ReservationUpdatePayload(
            room_id=room_id,
            check_in_date=check_in,
            check_out_date=check_out,
            status=status,
            payment_status=payment_status,
            cancellation_reason=cancellation_reason if status == "cancelled" else None,
        )
        if room_id is not None or check_in or check_out:
            start, end = validate_stay(payload.check_in_date or current.check_in_date,
                                       payload.check_out_date or current.check_out_date)
            room = RoomService(api).get(room_id or current.room_id)
            payload.total_amount = total_amount(start, end, room.price_per_night)
        updated = store.update(reservation_id, payload)

    entry = next((r for r in store.items if r.id == updated.id), updated)
    guest = entry.user.full_name if entry.kind == "reservation_with_user" else f"#{entry.user_id}"
    console.print(f"[green]Reservación #{updated.id} actualizada[/green] ({guest}, "
                  f"{_money(updated.total_amount)}, {get_reservation_status_label(updated.status)})")


if __name__ == "__main__":
    app()
