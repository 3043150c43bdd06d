"""
Rich request/response panels for verbose clients.

Only used when ``ClientConfig.verbose`` is set; everything else goes through
the standard logging module.
"""
import json
import re
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

console = Console(stderr=True)

_SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")
_AUTH_VISIBLE_CHARS = 15


def mask_auth_header(value: Optional[str], visible_chars: int = _AUTH_VISIBLE_CHARS) -> str:
    """Mask a credential header value, keeping a short prefix readable."""
    if not value:
        return "<none>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "***"


def mask_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` with credential values masked."""
    return {
        key: mask_auth_header(value) if key.lower() in _SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def mask_url(url: str, param: str) -> str:
    """Mask the value of one query parameter in a URL."""
    return re.sub(rf"([?&]{re.escape(param)}=)[^&]+", r"\1****", url)


def format_body(body: Any) -> str:
    """Format body for pretty printing."""
    if body is None:
        return ""
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2, ensure_ascii=False)
    if isinstance(body, bytes):
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            return f"<binary data: {len(body)} bytes>"
    return str(body)


def print_panel(content: str, title: Optional[str] = None) -> None:
    console.print(Panel(content, title=title))


def print_syntax_panel(code: str, lexer: str = "json", title: Optional[str] = None) -> None:
    console.print(Panel(Syntax(code, lexer, theme="monokai"), title=title, expand=True))


def print_request(method: str, url: str, headers: Mapping[str, str], body: Any = None) -> None:
    """Print an outgoing request. Credentials are masked."""
    print_panel(f"[bold cyan]{method}[/bold cyan] {url}", title="[bold blue]Request[/bold blue]")
    console.print("[bold]Headers:[/bold]", mask_headers(headers))
    if body is not None:
        print_syntax_panel(format_body(body), title="[bold]Request Body[/bold]")


def print_response(
    status: int,
    reason: str,
    url: str,
    headers: Mapping[str, str],
    body: Any = None,
) -> None:
    """Print a received response."""
    color = "green" if 200 <= status < 300 else "red"
    print_panel(
        f"[bold {color}]{status}[/bold {color}] {reason}",
        title=f"[bold blue]Response[/bold blue] ({url})",
    )
    console.print("[bold]Headers:[/bold]", dict(headers))
    if body:
        print_syntax_panel(format_body(body), title="[bold]Response Body[/bold]")
