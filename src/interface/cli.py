"""CLI interface for the health companion using Rich.

Runs messages through the same pipeline the webhook uses, but prints the
reply instead of sending it to LINE.
"""

import argparse
import logging
import os
import time
import uuid

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from src.agent.models import InboundMessage
from src.agent.pipeline import HealthCompanion, PipelineRun, PipelineState

console = Console()

DEFAULT_USER_ID = "cli-user"
EXIT_WORDS = ("exit", "quit", "bye")

_STATE_STYLES = {
    PipelineState.COMPLETED: "blue",
    PipelineState.DEGRADED: "yellow",
    PipelineState.SKIPPED: "dim",
}


def configure_logging(level: str | None = None) -> None:
    level = (level or os.environ.get("HEALTH_COMPANION_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


def make_message(text: str, user_id: str = DEFAULT_USER_ID) -> InboundMessage:
    """Wrap terminal input as if it had arrived from LINE."""
    return InboundMessage(
        user_id=user_id,
        text=text,
        reply_token=f"cli-{uuid.uuid4().hex[:12]}",
        timestamp=int(time.time() * 1000),
    )


def display_run(run: PipelineRun) -> None:
    """Print the reply and any activity logs produced for one message."""
    if run.log_events:
        table = Table(title="Activity logs", show_lines=False)
        table.add_column("#", justify="right")
        table.add_column("Weight")
        table.add_column("Meal")
        table.add_column("Workout")
        for index, event in enumerate(run.log_events, start=1):
            table.add_row(str(index), event.weight or "-", event.meal or "-", event.workout or "-")
        console.print(table)

    intent = run.intent.value if run.intent else "none"
    title = f"Health Companion [{intent} / {run.state.value}]"
    style = _STATE_STYLES.get(run.state, "blue")
    if run.reply is None:
        console.print(f"[dim]No reply ({run.state.value}).[/dim]")
        return
    console.print(Panel(escape(run.reply.message), title=title, style=style))


def run_once(companion: HealthCompanion, text: str, user_id: str = DEFAULT_USER_ID) -> PipelineRun:
    run = companion.handle(make_message(text, user_id))
    display_run(run)
    return run


def run_chat(companion: HealthCompanion, user_id: str = DEFAULT_USER_ID) -> None:
    """Interactive loop: one pipeline pass per line of input."""
    console.print(Panel(
        "[bold]Health Companion[/bold] - log activities, ask for meal or workout plans, "
        "or ask me to analyze your habits. Type 'exit' to quit.",
        style="blue",
    ))

    while True:
        try:
            user_input = Prompt.ask("\n[bold]You[/bold]")
        except (KeyboardInterrupt, EOFError):
            user_input = "exit"

        if user_input.strip().lower() in EXIT_WORDS:
            console.print("[dim]See you next time![/dim]")
            break
        if not user_input.strip():
            continue

        with console.status("[dim]Thinking...[/dim]"):
            run = companion.handle(make_message(user_input, user_id))
        display_run(run)


def serve(host: str, port: int, locale: str | None = None) -> None:
    import uvicorn

    from src.interface.webhook import create_app_from_env

    uvicorn.run(create_app_from_env(locale=locale), host=host, port=port)


def main(args: list[str] | None = None):
    """Main CLI entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        prog="health-companion",
        description="Health Companion - LINE health assistant backed by Gemini",
    )
    parser.add_argument(
        "--message", "-m", metavar="TEXT",
        help="Run a single message through the pipeline and print the reply",
    )
    parser.add_argument(
        "--user", default=DEFAULT_USER_ID,
        help="User id to attach to messages (default: %(default)s)",
    )
    parser.add_argument(
        "--locale", choices=["zh-TW", "en"],
        help="Language for fallback replies",
    )
    parser.add_argument(
        "--serve", action="store_true",
        help="Start the LINE webhook server",
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3000")))
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: HEALTH_COMPANION_LOG_LEVEL or INFO)",
    )

    parsed = parser.parse_args(args)
    configure_logging(parsed.log_level)

    if parsed.serve:
        serve(parsed.host, parsed.port, locale=parsed.locale)
        return

    companion = HealthCompanion(locale=parsed.locale)

    if parsed.message:
        run_once(companion, parsed.message, user_id=parsed.user)
        return

    # Default: interactive chat
    run_chat(companion, user_id=parsed.user)


if __name__ == "__main__":
    main()
