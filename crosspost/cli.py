"""Crosspost CLI: post one message to several platforms."""

import asyncio
import signal
from pathlib import Path

import click

from . import __version__
from .cancellation import CancellationToken
from .client import Client
from .config import settings
from .domain.errors import CrosspostError
from .domain.ports import ImageEmbed, PostOptions, Result
from .infrastructure.logging import configure_logging
from .infrastructure.strategy_factory import StrategyFactory

# (strategy id, short option, help)
PLATFORM_FLAGS = (
    ("bluesky", "-b", "Post to Bluesky."),
    ("mastodon", "-m", "Post to Mastodon."),
    ("discord", "-d", "Post to Discord via bot."),
    ("discord-webhook", None, "Post to Discord via webhook."),
    ("telegram", None, "Post to Telegram."),
    ("devto", None, "Publish a Dev.to article."),
    ("linkedin", "-l", "Post to LinkedIn."),
    ("threads", None, "Post to Threads."),
    ("slack", None, "Post to Slack."),
    ("webflow", None, "Add a Webflow collection item."),
    ("facebook", None, "Post to Facebook."),
    ("instagram", None, "Post to Instagram (needs an image uploader)."),
    ("twitter", "-t", "Post to Twitter."),
    ("x", None, "Post to X."),
)


def _param_name(strategy_id: str) -> str:
    return strategy_id.replace("-", "_")


def _platform_options(func):
    for strategy_id, short, help_text in reversed(PLATFORM_FLAGS):
        decls = [f"--{strategy_id}", short] if short else [f"--{strategy_id}"]
        func = click.option(*decls, _param_name(strategy_id), is_flag=True, help=help_text)(func)
    return func


def selected_platforms(flags: dict[str, bool]) -> list[str]:
    """Strategy ids whose flags are set, in flag order."""
    return [sid for sid, _, _ in PLATFORM_FLAGS if flags.get(_param_name(sid))]


def read_message(message: str | None, file: Path | None) -> str:
    """
    Resolve the message text from the argument or a file.

    Escaped newlines typed on the command line become real newlines.
    """
    if file is not None:
        return file.read_text(encoding="utf-8")
    if not message:
        raise click.UsageError("Provide a message or --file.")
    return message.replace("\\n", "\n")


def load_images(paths: tuple[Path, ...], alts: tuple[str, ...]) -> tuple[ImageEmbed, ...]:
    """Read image files, pairing each with the --image-alt at the same position."""
    return tuple(
        ImageEmbed(data=path.read_bytes(), alt=alts[index] if index < len(alts) else None)
        for index, path in enumerate(paths)
    )


def format_result(result: Result) -> str:
    if result.ok:
        line = f"OK   {result.name}"
        return f"{line} {result.url}" if result.url else line
    return f"FAIL {result.name}: {result.reason}"


async def run(strategy_ids: list[str], message: str, images: tuple[ImageEmbed, ...]) -> list[Result]:
    """Post through the selected platforms; Ctrl+C cancels requests in flight."""
    strategies = StrategyFactory().create_many(strategy_ids)
    client = Client(strategies)
    token = CancellationToken()

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, token.cancel)
    try:
        return await client.post(message, PostOptions(images=images, signal=token))
    finally:
        loop.remove_signal_handler(signal.SIGINT)


@click.command()
@click.version_option(version=__version__, prog_name="crosspost")
@_platform_options
@click.option(
    "--file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the message from a file.",
)
@click.option(
    "--image",
    "images",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    multiple=True,
    help="Attach an image (repeatable).",
)
@click.option("--image-alt", "image_alts", multiple=True, help="Alt text for the image at the same position.")
@click.argument("message", required=False)
def main(file, images, image_alts, message, **flags):
    """Post MESSAGE to every selected platform."""
    platforms = selected_platforms(flags)
    configure_logging(settings.service_name, json_logs=settings.log_json, level=settings.log_level)

    if not platforms:
        raise click.UsageError("Select at least one platform.")

    text = read_message(message, file)

    try:
        embeds = load_images(images, image_alts)
        results = asyncio.run(run(platforms, text, embeds))
    except (CrosspostError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    for result in results:
        click.echo(format_result(result))

    if not all(result.ok for result in results):
        raise SystemExit(1)
