"""cardwise CLI: deck management, spaced-repetition study and stats."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from cardwise.application import cards as card_service
from cardwise.application.config import AppConfig, make_rng
from cardwise.application.factory import (
    get_card_repository,
    get_session_controller,
    get_session_log,
)
from cardwise.application.scheduler import apply_review, order_cards, select_study_batch
from cardwise.application.stats import StatsCalculator
from cardwise.domain.errors import CardwiseError, InvalidQualityError
from cardwise.domain.models import Card
from cardwise.interface._common import _resolve_with_overrides, echo_json, fail, humanize_error

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cardwise: spaced-repetition flashcards from the terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cardwise configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

CARD_ORDERS = ("sequential", "random", "due")
DIFFICULTIES = ("easy", "medium", "hard")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
    user: Annotated[str | None, typer.Option(help="User whose deck to use.")] = None,
    data_dir: Annotated[Path | None, typer.Option(help="Directory holding card data.")] = None,
):
    """Global settings for cardwise."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"user_id": user, "data_dir": data_dir, "verbose": verbose}
    if verbose > 1:
        logging.getLogger("cardwise").setLevel(logging.DEBUG)


def _config(ctx: typer.Context, **extra) -> AppConfig:
    overrides = dict((ctx.obj or {}).get("overrides", {}))
    overrides.update(extra)
    return _resolve_with_overrides(**overrides)


async def _load_cards(config: AppConfig) -> list[Card]:
    return await get_card_repository(config).load(config.user_id)


async def _save_cards(config: AppConfig, cards: list[Card]) -> None:
    if not await get_card_repository(config).save(config.user_id, cards):
        typer.secho("Failed to save cards.", fg="red", err=True)
        raise typer.Exit(1)


def _run(coro):
    try:
        return asyncio.run(coro)
    except CardwiseError as e:
        fail(e)


def _card_line(card: Card) -> str:
    due = card.next_review_date.date().isoformat() if card.next_review_date else "new"
    return f"{card.id}  [{card.mastery_level:>3}%  {due}]  {card.question}"


# ---------------------------------------------------------------------------
# Deck management
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Text file of 'Q: ... | A: ... | R: ...' lines.")],
    tags: Annotated[str | None, typer.Option(help="Comma-separated tags for every card.")] = None,
):
    """[bold green]Add[/bold green] flashcards parsed from generated text."""
    config = _config(ctx)
    if not path.exists():
        typer.secho(f"File not found: {path}", fg="red", err=True)
        raise typer.Exit(1)

    new_cards = card_service.parse_flashcards(
        path.read_text(encoding="utf-8"), card_service.parse_tag_list(tags)
    )
    if not new_cards:
        typer.secho("No flashcards found in input.", fg="yellow")
        raise typer.Exit(1)

    async def _add():
        cards = await _load_cards(config)
        await _save_cards(config, cards + new_cards)

    _run(_add())
    typer.secho(f"Added {len(new_cards)} cards.", fg="green")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    search: Annotated[str | None, typer.Option(help="Text to look for.")] = None,
    category: Annotated[str | None, typer.Option(help="Exact category.")] = None,
    difficulty: Annotated[str | None, typer.Option(help="easy, medium or hard.")] = None,
    tag: Annotated[list[str] | None, typer.Option(help="Tag filter. Repeatable.")] = None,
    order: Annotated[
        str | None, typer.Option(help="sequential, random or due. Defaults to config.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards in the deck."""
    if order and order not in CARD_ORDERS:
        typer.secho(
            f"Unknown order '{order}'. Use one of: {', '.join(CARD_ORDERS)}.",
            fg="red",
            err=True,
        )
        raise typer.Exit(2)

    config = _config(ctx, order=order)
    cards = _run(_load_cards(config))
    cards = card_service.filter_cards(cards, search, category, difficulty, tag)
    cards = order_cards(cards, config.order, make_rng(config))

    if json_output:
        echo_json(cards)
        return

    for card in cards:
        typer.echo(_card_line(card))
    typer.secho(f"{len(cards)} cards", fg="cyan")


@app.command()
def edit(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    question: Annotated[str | None, typer.Option(help="New question.")] = None,
    answer: Annotated[str | None, typer.Option(help="New answer.")] = None,
    reasoning: Annotated[str | None, typer.Option(help="New reasoning.")] = None,
    category: Annotated[str | None, typer.Option(help="New category.")] = None,
    difficulty: Annotated[str | None, typer.Option(help="easy, medium or hard.")] = None,
):
    """Edit a card's content. Review progress is kept."""
    if difficulty and difficulty not in DIFFICULTIES:
        typer.secho(
            f"Unknown difficulty '{difficulty}'. Use easy, medium or hard.", fg="red", err=True
        )
        raise typer.Exit(2)

    config = _config(ctx)

    async def _edit():
        cards = await _load_cards(config)
        card = card_service.find_card(cards, card_id)
        updated = card_service.edit_card(card, question, answer, reasoning, category, difficulty)
        await _save_cards(config, card_service.replace_card(cards, updated))

    _run(_edit())
    typer.secho(f"Updated {card_id}", fg="green")


@app.command()
def delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Delete a card."""
    config = _config(ctx)
    if not force:
        typer.confirm(f"Delete card {card_id}?", abort=True)

    async def _delete():
        cards = await _load_cards(config)
        await _save_cards(config, card_service.delete_card(cards, card_id))

    _run(_delete())
    typer.secho(f"Deleted {card_id}", fg="green")


@app.command()
def tag(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    tags: Annotated[str, typer.Argument(help="Comma-separated tags to add.")],
):
    """Add user tags to a card."""
    config = _config(ctx)

    async def _tag():
        cards = await _load_cards(config)
        card = card_service.find_card(cards, card_id)
        updated = card_service.add_user_tags(card, card_service.parse_tag_list(tags))
        await _save_cards(config, card_service.replace_card(cards, updated))
        return updated

    updated = _run(_tag())
    typer.echo(", ".join(updated.tags))


@app.command()
def untag(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    tag_name: Annotated[str, typer.Argument(help="User tag to remove.")],
):
    """Remove a user tag. System tags stay."""
    config = _config(ctx)

    async def _untag():
        cards = await _load_cards(config)
        card = card_service.find_card(cards, card_id)
        if tag_name in card.system_tags and tag_name not in card.user_tags:
            typer.secho(f"'{tag_name}' is a system tag and cannot be removed.", fg="yellow")
            return card
        updated = card_service.remove_user_tag(card, tag_name)
        await _save_cards(config, card_service.replace_card(cards, updated))
        return updated

    updated = _run(_untag())
    typer.echo(", ".join(updated.tags))


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Destination JSON file.")],
):
    """Export the deck to a JSON file."""
    from cardwise.infrastructure.storage import export_cards

    config = _config(ctx)
    cards = _run(_load_cards(config))
    try:
        export_cards(cards, path)
    except OSError as e:
        typer.secho(f"Export failed: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
    typer.secho(f"Exported {len(cards)} cards to {path}", fg="green")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="JSON file produced by 'export'.")],
):
    """Append cards from a JSON export to the deck."""
    from cardwise.infrastructure.storage import import_cards

    config = _config(ctx)
    if not path.exists():
        typer.secho(f"File not found: {path}", fg="red", err=True)
        raise typer.Exit(1)

    async def _import():
        imported = import_cards(path)
        cards = await _load_cards(config)
        await _save_cards(config, cards + imported)
        return imported

    imported = _run(_import())
    typer.secho(f"Successfully imported {len(imported)} cards!", fg="green")


# ---------------------------------------------------------------------------
# Study
# ---------------------------------------------------------------------------


@app.command()
def batch(
    ctx: typer.Context,
    mode: Annotated[str, typer.Argument(help="new, review, mastered, difficult or mixed.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show which cards a study session in MODE would cover."""
    config = _config(ctx)

    async def _batch():
        cards = await _load_cards(config)
        return select_study_batch(cards, mode, datetime.now())

    selected = _run(_batch())
    if json_output:
        echo_json(selected)
        return

    if not selected:
        typer.secho(f"No cards available for study in '{mode}' mode.", fg="yellow")
        return
    for card in selected:
        typer.echo(_card_line(card))


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card ID.")],
    quality: Annotated[int, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
):
    """Record a single review outside of a study session."""
    config = _config(ctx)

    async def _review():
        cards = await _load_cards(config)
        card = card_service.find_card(cards, card_id)
        updated = apply_review(card, quality, datetime.now())
        await _save_cards(config, card_service.replace_card(cards, updated))
        return updated

    updated = _run(_review())
    typer.secho(
        f"Next review {updated.next_review_date.date().isoformat()} "
        f"(in {updated.interval} days), mastery {updated.mastery_level}%",
        fg="green",
    )


@app.command()
def study(
    ctx: typer.Context,
    mode: Annotated[
        str | None, typer.Argument(help="Study mode. Defaults to config 'default_mode'.")
    ] = None,
    shuffle: Annotated[bool, typer.Option("--shuffle", help="Randomize card order.")] = False,
):
    """[bold green]Study[/bold green] an interactive spaced-repetition session."""
    config = _config(ctx)
    mode = mode or config.default_mode.value
    controller = get_session_controller(config)

    async def _study():
        cards = await controller.start(mode, shuffle=shuffle)
        typer.secho(f"Studying {len(cards)} cards in '{mode}' mode.", fg="cyan")

        try:
            while controller.current is not None:
                card = controller.current
                typer.echo(f"\n[{controller.position + 1}/{len(cards)}] Q: {card.question}")
                typer.prompt("Press Enter to reveal", default="", show_default=False)
                typer.echo(f"A: {card.answer}")
                if card.reasoning:
                    typer.echo(f"R: {card.reasoning}")

                while True:
                    quality = typer.prompt("Quality (0-5)", type=int)
                    try:
                        updated = await controller.respond(quality)
                        break
                    except InvalidQualityError as e:
                        typer.secho(humanize_error(e), fg="yellow")

                typer.echo(
                    f"Next review in {updated.interval} day(s). "
                    f"Mastery {updated.mastery_level}%"
                )
        except typer.Abort:
            typer.echo("\nSession ended early.")

        return await controller.finish()

    summary = _run(_study())
    stats = summary.stats
    typer.secho(
        f"\nSession complete: {stats.correct} correct, {stats.incorrect} incorrect, "
        f"{stats.total} total ({stats.accuracy:.0f}%).",
        fg="green",
    )


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show deck statistics."""
    config = _config(ctx)

    async def _stats():
        cards = await _load_cards(config)
        sessions = await get_session_log(config).load(config.user_id)
        return StatsCalculator().compute(cards, sessions, datetime.now())

    result = _run(_stats())
    if json_output:
        echo_json(result)
        return

    typer.echo(f"Total cards:    {result.total_cards}")
    typer.echo(f"New:            {result.new_cards}")
    typer.echo(f"Due:            {result.due_cards}")
    typer.echo(f"Mastered:       {result.mastered_cards}")
    typer.echo(f"Study streak:   {result.study_streak} days")
    typer.echo(f"Study time:     {result.total_study_time / 60:.1f} min")
    typer.echo(f"Accuracy:       {result.average_accuracy:.1f}%")


# ---------------------------------------------------------------------------
# Config / server
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display the resolved configuration as JSON."""
    config = _config(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    config = _config(ctx)
    uvicorn.run(
        "cardwise.server:app",
        host=host or config.server_host,
        port=port or config.server_port,
        reload=reload,
    )
