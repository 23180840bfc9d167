from __future__ import annotations

import logging
from typing import Callable

import typer

from gh_update.comparison import ComparisonRunner, render_summary
from gh_update.config import Options, load_options

__VERSION__ = "0.1.0"

_LOGGER = logging.getLogger(__name__)

Prompt = Callable[..., str]

app = typer.Typer(
    name="gh-file-update",
    help="Compare PyGithub, REST and GraphQL ways of updating files on GitHub.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def collect_inputs(options: Options, prompt: Prompt = typer.prompt) -> Options:
    """Ask for the repository coordinates; configured values become defaults.

    Fields without a configured value are required, so ``typer.prompt`` asks
    again on empty input. The token is read without echo.
    """
    updates: dict[str, str] = {}
    if not options.github_token:
        _LOGGER.warning("GITHUB_TOKEN environment variable not set")
        updates["github_token"] = prompt("Enter GitHub personal access token", hide_input=True)
    updates["owner"] = prompt("Enter repository owner", default=options.owner)
    updates["repo"] = prompt("Enter repository name", default=options.repo)
    updates["file_path"] = prompt(
        "Enter file path to update (e.g., README.md)", default=options.file_path
    )
    updates["branch"] = prompt("Enter branch name", default=options.branch or "main")
    return options.model_copy(update={key: value.strip() for key, value in updates.items()})


def configure_logging(level: str) -> None:
    log_level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(
        level=log_level_map.get(level.lower(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main(prompt: Prompt = typer.prompt) -> int:
    try:
        options = load_options()
    except RuntimeError as exc:
        typer.echo(str(exc), err=True)
        return 1
    configure_logging(options.log_level)
    _LOGGER.info("GitHub API comparison starting | version=%s", __VERSION__)

    try:
        options = collect_inputs(options, prompt)
        runner = ComparisonRunner(options)
        _LOGGER.debug("Running with options: %s", options.public_config())
        outcomes = runner.run()
    except (EOFError, KeyboardInterrupt, typer.Abort):
        _LOGGER.error("Aborted")
        return 1
    except RuntimeError as exc:
        _LOGGER.error("%s", exc)
        return 1

    typer.echo(render_summary(outcomes))
    return 0


@app.command()
def compare() -> None:
    """Run all three update paths against one file and print the comparison."""
    code = main()
    if code:
        raise typer.Exit(code)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
