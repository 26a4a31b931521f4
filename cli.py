"""
Simple CLI runner for MisIntel.
Run the advanced-check pipeline locally without starting the API.
"""

import asyncio
import json
import logging

import typer
from config import get_settings
from models.schemas import AnalysisRequest, InputKind
from graph.workflow import build_orchestrator
from exceptions import MisinfoCheckError

app = typer.Typer(add_completion=False)
settings = get_settings()

CLI_CLIENT_ID = "cli"


def _print_json(data: dict):
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _run(request: AnalysisRequest):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    orchestrator = build_orchestrator(settings)
    try:
        result = asyncio.run(orchestrator.run(request, client_id=CLI_CLIENT_ID))
    except MisinfoCheckError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(code=1)

    print("\n📋 RESULT:")
    _print_json(result.to_wire())


@app.command("check")
def check_text(
    text: str = typer.Argument(..., help="Text to check"),
):
    """Analyze a piece of text."""
    print("=" * 60)
    print("🔍 MisIntel - Advanced Check")
    print("=" * 60)
    print(f"Gemini configured: {settings.has_gemini} ({settings.gemini_model})")
    print(f"Text: {text}")
    print("-" * 60)

    _run(AnalysisRequest(kind=InputKind.TEXT, body=text))


@app.command("check-url")
def check_url(
    url: str = typer.Argument(..., help="Article URL to check"),
    force_fresh: bool = typer.Option(False, "--force-fresh", help="Bypass the URL cache"),
):
    """Analyze the article behind a URL."""
    print("=" * 60)
    print("🔗 MisIntel - URL Check")
    print("=" * 60)
    print(f"URL: {url}")
    print("-" * 60)

    _run(AnalysisRequest(kind=InputKind.URL, url=url, force_fresh=force_fresh))


@app.command("author")
def author(
    url: str = typer.Argument(..., help="Article URL"),
):
    """Show the byline and author credibility for a URL."""
    orchestrator = build_orchestrator(settings)
    info = asyncio.run(orchestrator.author_info(url))
    _print_json(info.to_wire())


if __name__ == "__main__":
    app()
