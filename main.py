"""
Fitness client - command-line access to the coaching platform API.

Logs in, keeps the session in secure storage between runs and performs
authenticated requests against the platform's REST API.

Usage:
    python main.py login coach@example.com
    python main.py whoami
    python main.py request GET /trainer/clients
    python main.py request POST /trainer/exercises --data '{"name": "Squat"}'
    python main.py logout
"""

import argparse
import asyncio
import getpass
import json
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from shared.codec import decode_json
from shared.config import get_settings
from shared.exceptions import FitnessClientError
from shared.log_config import configure_logging
from modules.api.exceptions import NoDataError
from modules.api.models import NO_CONTENT
from modules.container import ServiceContainer

console = Console()


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Parse repeated ``key=value`` arguments into query parameters."""
    params: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid parameter '{pair}'. Expected format: key=value")
        key, value = pair.split("=", 1)
        params[key] = value
    return params


def print_user(container: ServiceContainer) -> None:
    user = container.session.current_user()
    if user is None:
        console.print("[yellow]Not logged in.[/yellow]")
        return

    table = Table(show_header=False, box=None)
    table.add_row("ID", user.id)
    table.add_row("Name", user.name)
    table.add_row("Email", user.email)
    table.add_row("Roles", ", ".join(user.roles) or "-")
    table.add_row("Since", user.created_at.strftime("%Y-%m-%d"))
    if user.trainer_id:
        table.add_row("Trainer", user.trainer_id)
    if user.client_ids:
        table.add_row("Clients", str(len(user.client_ids)))
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    async with ServiceContainer(get_settings()) as container:
        if args.command == "login":
            password = getpass.getpass("Password: ")
            await container.auth.login(args.email, password)
            console.print("[green]Logged in.[/green]")
            print_user(container)

        elif args.command == "logout":
            await container.auth.logout()
            console.print("Logged out.")

        elif args.command == "whoami":
            print_user(container)

        elif args.command == "forgot-password":
            await container.auth.forgot_password(args.email)
            console.print("If the account exists, a reset email is on its way.")

        elif args.command == "request":
            body = decode_json(args.data) if args.data else None
            try:
                result: Any = await container.api.request(
                    args.method,
                    args.path,
                    body=body,
                    params=parse_params(args.param),
                    response_model=None if args.no_content else Any,
                )
            except NoDataError:
                # 204 and other empty 2xx replies are a success here
                result = NO_CONTENT
            if result is NO_CONTENT:
                console.print("[green]OK[/green] (no content)")
            else:
                console.print_json(json.dumps(result))

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fitness coaching platform client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in with email and password")
    login.add_argument("email")

    commands.add_parser("logout", help="Clear the stored session")
    commands.add_parser("whoami", help="Show the logged-in user")

    forgot = commands.add_parser("forgot-password", help="Request a password reset email")
    forgot.add_argument("email")

    request = commands.add_parser("request", help="Perform an authenticated API request")
    request.add_argument("method", choices=["GET", "POST", "PUT", "PATCH", "DELETE"], type=str.upper)
    request.add_argument("path", help="Endpoint path, e.g. /trainer/clients")
    request.add_argument("--data", help="JSON request body")
    request.add_argument("--param", action="append", default=[], help="Query parameter key=value (repeatable)")
    request.add_argument("--no-content", action="store_true", help="Don't decode the response body")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    settings = get_settings()
    configure_logging("DEBUG" if args.debug or settings.debug else settings.log_level)

    try:
        return asyncio.run(run(args))
    except FitnessClientError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
