"""authgate CLI — talk to a running authgate server from the terminal.

Usage:
    authgate register "Ada Lovelace" ada@example.com     # prompts for password
    authgate login ada@example.com
    authgate me
    authgate update-profile --fullname "Ada King" --avatar ./ada.png
    authgate refresh
    authgate logout
    authgate serve                                       # run the API with uvicorn

Auth lives in cookies, so the CLI keeps a small cookie file between
invocations (AUTHGATE_COOKIE_FILE, default ~/.authgate/cookies.json).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import mimetypes
import os
import sys
from pathlib import Path
from typing import Any, Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_COOKIE_FILE = Path.home() / ".authgate" / "cookies.json"

USER_FIELDS = "id fullname email avatarUrl createdAt updatedAt"


def _api_url() -> str:
    return os.environ.get("AUTHGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _cookie_file() -> Path:
    return Path(os.environ.get("AUTHGATE_COOKIE_FILE", DEFAULT_COOKIE_FILE))


def _load_cookies() -> dict[str, str]:
    path = _cookie_file()
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError):
        return {}


def _save_cookies(client: httpx.AsyncClient) -> None:
    path = _cookie_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    jar = {cookie.name: cookie.value for cookie in client.cookies.jar}
    path.write_text(json.dumps(jar))
    path.chmod(0o600)


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the authgate backend."""
    return httpx.AsyncClient(
        base_url=_api_url(), timeout=30.0, cookies=_load_cookies()
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


async def _graphql(
    query: str,
    variables: Optional[dict[str, Any]] = None,
    upload: Optional[Path] = None,
) -> dict:
    """Send one GraphQL operation, persist cookies, exit(1) on errors."""
    async with _client() as c:
        if upload is None:
            r = await c.post("/graphql", json={"query": query, "variables": variables or {}})
        else:
            # GraphQL multipart request: operations + map + the file part
            operations = {"query": query, "variables": {**(variables or {}), "file": None}}
            mime = mimetypes.guess_type(upload.name)[0] or "application/octet-stream"
            with upload.open("rb") as fh:
                r = await c.post(
                    "/graphql",
                    data={
                        "operations": json.dumps(operations),
                        "map": json.dumps({"0": ["variables.file"]}),
                    },
                    files={"0": (upload.name, fh, mime)},
                )
        r.raise_for_status()
        _save_cookies(c)

    body = r.json()
    if body.get("errors"):
        for err in body["errors"]:
            code = err.get("extensions", {}).get("code", "ERROR")
            click.secho(f"{code}: {err['message']}", fg="red", err=True)
            for field, msg in err.get("extensions", {}).get("fields", {}).items():
                click.secho(f"  {field}: {msg}", fg="red", err=True)
        sys.exit(1)
    return body["data"]


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="authgate")
def main():
    """authgate — register, log in, and manage your profile."""


@main.command()
@click.argument("fullname")
@click.argument("email")
@click.password_option()
def register(fullname: str, email: str, password: str):
    """Create an account and log in."""
    data = _run(_graphql(
        f"mutation Register($input: RegisterInput!) {{"
        f" register(registerInput: $input) {{ user {{ {USER_FIELDS} }} }} }}",
        {"input": {
            "fullname": fullname,
            "email": email,
            "password": password,
            "confirmPassword": password,
        }},
    ))
    click.secho(f"Registered {data['register']['user']['email']}", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in with email and password."""
    data = _run(_graphql(
        f"mutation Login($input: LoginInput!) {{"
        f" login(loginInput: $input) {{ user {{ {USER_FIELDS} }} }} }}",
        {"input": {"email": email, "password": password}},
    ))
    click.secho(f"Logged in as {data['login']['user']['fullname']}", fg="green")


@main.command()
def refresh():
    """Get a fresh access token from the stored refresh token."""
    _run(_graphql("mutation { refreshToken }"))
    click.secho("Access token refreshed", fg="green")


@main.command()
def logout():
    """Clear the stored auth cookies."""
    data = _run(_graphql("mutation { logout }"))
    click.echo(data["logout"])


@main.command()
def me():
    """Show the signed-in user."""
    data = _run(_graphql(f"query {{ me {{ {USER_FIELDS} }} }}"))
    click.echo(_pretty_json(data["me"]))


@main.command("update-profile")
@click.option("--fullname", help="New display name")
@click.option(
    "--avatar",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image file to upload as avatar",
)
def update_profile(fullname: Optional[str], avatar: Optional[Path]):
    """Change display name and/or avatar."""
    if not fullname and avatar is None:
        click.secho("Nothing to update: pass --fullname and/or --avatar", fg="red", err=True)
        sys.exit(1)
    data = _run(_graphql(
        f"mutation Update($fullname: String, $file: Upload) {{"
        f" updateProfile(fullname: $fullname, file: $file) {{ {USER_FIELDS} }} }}",
        {"fullname": fullname},
        upload=avatar,
    ))
    click.echo(_pretty_json(data["updateProfile"]))


@main.command()
@click.option("--host", default=None, help="Bind address (default AUTHGATE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default AUTHGATE_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from authgate.config import settings

    uvicorn.run(
        "authgate.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )
