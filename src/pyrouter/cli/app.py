"""Main CLI application using Typer."""
import asyncio
import base64
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..chat import ChatStateMachine
from ..config import AppSettings
from ..llm import (
    ChatClient,
    ChatRequest,
    ContentPart,
    ImageConfig,
    ListModelsOptions,
    Message,
    Model,
    PyrouterError,
    format_price_per_million,
)
from ..memory import ChatSession, SessionNotFoundError, SessionStoreError
from .providers import get_api_key, get_client, get_image_client, get_settings, get_store

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="pyrouter",
    help="Chat with OpenRouter models from the terminal",
    add_completion=True,
)

# Console for rich output
console = Console()

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}

DESCRIPTION_MAX_LENGTH = 200


def _configure_logging(log_level: str | None, tui: bool = False) -> None:
    """Set the package log threshold and, outside the TUI, log to stderr.

    The TUI attaches its own handler that writes into the log panel.
    """
    level = logging.getLevelName((log_level or "warning").upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"unknown log level: {log_level}", param_hint="--log-level")

    package_logger = logging.getLogger("pyrouter")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    if not tui:
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        )


def _chat_model(model: str | None, settings: AppSettings, session: ChatSession | None = None) -> str:
    """Pick the model: flag, then the session's own, then the configured default."""
    if model:
        return model
    if session is not None and session.model:
        return session.model
    return settings.default_model


def _print_error(e: Exception) -> None:
    console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)


# One-shot and interactive chat

async def _one_shot(client: ChatClient, model: str, prompt: str, stream: bool) -> None:
    request = ChatRequest(model=model, messages=(Message(role="user", content=prompt),))
    if not stream:
        response = await client.chat(request)
        if not response.choices:
            raise PyrouterError("no response from model")
        console.print(response.choices[0].message.content or "", markup=False, highlight=False)
        return

    async with await client.chat_stream(request) as reader:
        async for chunk in reader:
            console.print(chunk.content, end="", markup=False, highlight=False, soft_wrap=True)
    console.print()


def _run_prompt(prompt: str, model: str | None, stream: bool, log_level: str | None) -> None:
    _configure_logging(log_level)
    settings = get_settings(console)
    api_key = get_api_key(console, settings)
    chosen = _chat_model(model, settings)

    async def _prompt():
        client = get_client(api_key)
        try:
            await _one_shot(client, chosen, prompt, stream)
        except PyrouterError as e:
            _print_error(e)
            raise typer.Exit(code=1)
        finally:
            await client.close()

    asyncio.run(_prompt())


def _run_tui(
    model: str | None,
    log_level: str | None,
    session: ChatSession | None = None,
    show_session_picker: bool = False,
    settings: AppSettings | None = None,
) -> None:
    _configure_logging(log_level, tui=True)
    settings = settings or get_settings(console)
    api_key = get_api_key(console, settings)
    chosen = _chat_model(model, settings, session)

    async def _tui():
        from ..ui import run_chat_tui

        client = get_client(api_key)
        machine = ChatStateMachine(client, get_store(), session=session, model=chosen)
        try:
            await run_chat_tui(
                machine,
                client,
                log_level=log_level,
                show_session_picker=show_session_picker,
            )
        finally:
            await client.close()

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    prompt: str | None = typer.Option(
        None,
        "--prompt",
        "-p",
        help="Prompt for single-turn mode (omit for interactive chat)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to use (default from config)"
    ),
    stream: bool = typer.Option(
        True,
        "--stream/--no-stream",
        help="Stream the response in single-turn mode"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error (shows the log panel in chat)"
    ),
):
    """Chat with OpenRouter models. Without a subcommand, start a chat."""
    if ctx.invoked_subcommand is not None:
        return
    if prompt:
        _run_prompt(prompt, model, stream, log_level)
    else:
        _run_tui(model, log_level)


@app.command()
def chat(
    prompt: str | None = typer.Option(
        None,
        "--prompt",
        "-p",
        help="Prompt for single-turn mode (omit for interactive chat)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to use (default from config)"
    ),
    stream: bool = typer.Option(
        True,
        "--stream/--no-stream",
        help="Stream the response in single-turn mode"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error (shows the log panel in chat)"
    ),
):
    """Start an interactive chat, or answer a single prompt with -p."""
    if prompt:
        _run_prompt(prompt, model, stream, log_level)
    else:
        _run_tui(model, log_level)


@app.command()
def resume(
    session_id: str | None = typer.Argument(
        None,
        help="Session to resume (omit to pick from a list)"
    ),
    last: bool = typer.Option(
        False,
        "--last",
        help="Resume the most recently updated session"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to use instead of the session's own"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug, info, warning, or error"
    ),
):
    """Resume a saved chat session."""
    async def _find() -> tuple[ChatSession | None, bool]:
        store = get_store()
        if session_id:
            return await store.load(session_id), True
        if last:
            return await store.latest(), True
        return None, bool(await store.list_sessions())

    try:
        session, found = asyncio.run(_find())
    except SessionNotFoundError as e:
        if last:
            console.print("[red]Error: no sessions found[/red]")
        else:
            _print_error(e)
        raise typer.Exit(code=1)
    except SessionStoreError as e:
        _print_error(e)
        raise typer.Exit(code=1)

    if not found:
        console.print("No saved sessions found.")
        console.print("[dim]Start a new chat with: pyrouter[/dim]")
        return

    _run_tui(model, log_level, session=session, show_session_picker=session is None)


# Catalogue

def _model_details(m: Model) -> Panel:
    lines = [f"[bold]Name:[/bold] {m.name or m.id}"]
    if m.context_length is not None:
        lines.append(f"[bold]Context Length:[/bold] {m.context_length:,} tokens")
    lines.append(
        f"[bold]Pricing:[/bold] prompt=${format_price_per_million(m.pricing.prompt or '0')}/1M tokens, "
        f"completion=${format_price_per_million(m.pricing.completion or '0')}/1M tokens"
    )
    if m.architecture.input_modalities:
        lines.append(f"[bold]Input:[/bold] {', '.join(m.architecture.input_modalities)}")
    if m.architecture.output_modalities:
        lines.append(f"[bold]Output:[/bold] {', '.join(m.architecture.output_modalities)}")
    if m.description:
        desc = m.description
        if len(desc) > DESCRIPTION_MAX_LENGTH:
            desc = desc[:DESCRIPTION_MAX_LENGTH] + "..."
        lines.append(f"[bold]Description:[/bold] {desc}")
    return Panel("\n".join(lines), title=m.id, border_style="cyan")


@app.command()
def models(
    category: str | None = typer.Option(
        None,
        "--category",
        help="Filter by category (e.g. programming, roleplay, marketing)"
    ),
    supported_parameters: str | None = typer.Option(
        None,
        "--supported-parameters",
        help="Filter by supported parameters"
    ),
    details: bool = typer.Option(
        False,
        "--details",
        help="Show detailed model information"
    ),
    image_only: bool = typer.Option(
        False,
        "--image-only",
        help="Only show models that support image output"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error"
    ),
):
    """List available models."""
    _configure_logging(log_level)
    api_key = get_api_key(console)

    async def _models():
        client = get_client(api_key)
        try:
            options = ListModelsOptions(category=category, supported_parameters=supported_parameters)
            found = await client.list_models(options)
        except PyrouterError as e:
            _print_error(e)
            raise typer.Exit(code=1)
        finally:
            await client.close()

        if image_only:
            found = [m for m in found if m.is_image_model()]

        if not found:
            console.print("[yellow]No models found.[/yellow]")
            return

        console.print(f"[green]Found {len(found)} models[/green]\n")

        if details:
            for m in found:
                console.print(_model_details(m))
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Context", justify="right", style="dim")
        table.add_column("Prompt $/M", justify="right", style="green")
        table.add_column("Completion $/M", justify="right", style="green")
        for m in found:
            table.add_row(
                m.id,
                m.name,
                f"{m.context_length:,}" if m.context_length else "",
                format_price_per_million(m.pricing.prompt or "0"),
                format_price_per_million(m.pricing.completion or "0"),
            )
        console.print(table)

    asyncio.run(_models())


# Image generation

def detect_image_mime(path: Path) -> str:
    """MIME type of a supported input image, from its extension.

    Raises:
        typer.BadParameter: If the format is not supported
    """
    mime = IMAGE_MIME_TYPES.get(path.suffix.lower())
    if mime is None:
        raise typer.BadParameter(
            f"unsupported image format {path.suffix!r}; supported formats: png, jpg, jpeg, webp, gif",
            param_hint="--input",
        )
    return mime


def parse_data_url(data_url: str) -> str:
    """Extract the base64 payload of a ``data:<type>;base64,<data>`` URL.

    Raises:
        ValueError: If the URL is not a base64 data URL
    """
    if not data_url.startswith("data:"):
        raise ValueError("unexpected image URL format: must start with 'data:'")
    marker = ";base64,"
    idx = data_url.find(marker)
    if idx == -1:
        raise ValueError("unexpected image URL format: missing ';base64,' marker")
    return data_url[idx + len(marker):]


def _select_image_model(catalogue: list[Model], model_id: str) -> Model:
    image_models = [m for m in catalogue if m.is_image_model()]
    for m in image_models:
        if m.id == model_id:
            return m
    if any(m.id == model_id for m in catalogue):
        reason = f"model '{model_id}' does not support image output"
    else:
        reason = f"model '{model_id}' not found"
    available = "\n".join(f"  {m.id}" for m in image_models)
    raise PyrouterError(f"{reason}\n\nAvailable image-capable models:\n{available}")


@app.command()
def image(
    prompt: str = typer.Option(
        ...,
        "--prompt",
        "-p",
        help="Image generation prompt"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Image-capable model to use (default from config)"
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Output file path (e.g. output.png)"
    ),
    as_base64: bool = typer.Option(
        False,
        "--base64",
        help="Print raw base64 instead of saving to a file"
    ),
    input_image: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        exists=True,
        dir_okay=False,
        help="Input image to edit or refine (png, jpg, jpeg, webp, gif)"
    ),
    aspect_ratio: str | None = typer.Option(
        None,
        "--aspect-ratio",
        help="Aspect ratio, e.g. 1:1, 16:9, 9:16 (default: 1:1)"
    ),
    size: str | None = typer.Option(
        None,
        "--size",
        help="Resolution: 1K, 2K or 4K (default: 1K)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error"
    ),
):
    """Generate an image, optionally from an input image."""
    if file is None and not as_base64:
        raise typer.BadParameter("must specify either --file or --base64 for output")
    if file is not None and as_base64:
        raise typer.BadParameter("--file and --base64 are mutually exclusive")

    _configure_logging(log_level)
    settings = get_settings(console)
    api_key = get_api_key(console, settings)
    model_id = model or settings.default_image_model

    if input_image is not None:
        mime = detect_image_mime(input_image)
        try:
            encoded = base64.b64encode(input_image.read_bytes()).decode("ascii")
        except OSError as e:
            _print_error(PyrouterError(f"failed to read input image: {e}"))
            raise typer.Exit(code=1)
        message = Message(role="user", content=[
            ContentPart.of_text(prompt),
            ContentPart.of_image(f"data:{mime};base64,{encoded}"),
        ])
    else:
        message = Message(role="user", content=prompt)

    image_config = None
    if aspect_ratio or size:
        image_config = ImageConfig(aspect_ratio=aspect_ratio, image_size=size)

    async def _image() -> tuple[str, str]:
        client = get_client(api_key)
        generator = get_image_client(api_key)
        try:
            selected = _select_image_model(await client.list_models(), model_id)
            if input_image is not None and not selected.supports_image_input():
                raise PyrouterError(
                    f"model '{model_id}' does not support image input; "
                    "choose a model with image input modality"
                )
            request = ChatRequest(
                model=model_id,
                messages=(message,),
                modalities=("image", "text"),
                image_config=image_config,
            )
            if not as_base64:
                console.print(f"[dim]Generating image with {model_id}...[/dim]", highlight=False)
            response = await generator.chat(request)
        finally:
            await client.close()
            await generator.close()

        if not response.choices:
            raise PyrouterError("no response from model")
        reply = response.choices[0].message
        if not reply.images:
            if reply.content:
                raise PyrouterError(f"no image generated. Model response: {reply.content}")
            raise PyrouterError("no image in response")
        return parse_data_url(reply.images[0].image_url.url), reply.content or ""

    try:
        data, text = asyncio.run(_image())
        if as_base64:
            typer.echo(data)
            return
        file.write_bytes(base64.b64decode(data, validate=True))
    except (PyrouterError, ValueError, OSError) as e:
        _print_error(e)
        raise typer.Exit(code=1)

    console.print(f"[green]Image saved to {file}[/green]")
    if text:
        console.print(f"\n[bold]Model response:[/bold] {text}", highlight=False)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
