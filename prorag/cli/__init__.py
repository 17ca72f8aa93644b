"""
Command-Line Interface

CLI commands for ProRAG operations. Stores are in-memory, so each command
builds what it needs from the given file.

Commands:
    prorag columns     - List the columns of a table file
    prorag ask         - Build a store from a table and answer a structured query
    prorag graph       - Build the relationship graph over every row of a table
    prorag chat        - Quick question answering over a PDF, markdown or text document
    prorag taxonomies  - List available taxonomies

Usage:
    # Inspect columns
    prorag columns strategies.csv

    # Structured query
    prorag ask strategies.csv "How do we protect the site?" \\
        --dependency-col Risk --strategy-col Strategy --reference-col Code \\
        --field climateRisks=Flooding:dependency --graph --taxonomy AIA

    # Document chat
    prorag chat guidelines.pdf "What does the guide say about stormwater?"
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from prorag.errors import ProRAGError

__all__ = ["main", "app"]

app = typer.Typer(
    name="prorag",
    help="Retrieval-augmented answers and relationship graphs over design knowledge tables",
    no_args_is_help=True,
)
console = Console()


def _create_rag(semantic: bool = False):
    """Create the ProRAG facade from environment configuration."""
    from prorag.api.service import ProRAG
    from prorag.config import ProRAGConfig

    config = ProRAGConfig()
    if semantic:
        config = config.with_overrides(graph_match_strategy="semantic")
    return ProRAG(config)


def _parse_assignment(raw: str, option: str) -> tuple[str, str, str]:
    """Parse ``name=value:role`` into (name, value, role)."""
    if "=" not in raw or ":" not in raw.split("=", 1)[1]:
        raise typer.BadParameter(f"expected name=value:role, got '{raw}'", param_hint=option)
    name, rest = raw.split("=", 1)
    value, role = rest.rsplit(":", 1)
    return name.strip(), value.strip(), role.strip()


def _build_payload(fields: list[str], additional: str) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for raw in fields:
        group, value, role = _parse_assignment(raw, "--field")
        entry = payload.setdefault(group, {"values": [], "type": role})
        entry["values"].append(value)
    if additional:
        payload["additional"] = additional
    return payload


def _column_map(dependency: list[str], strategy: list[str], reference: list[str]) -> dict[str, list[str]]:
    return {"dependencyCol": dependency, "strategyCol": strategy, "referenceCol": reference}


def _print_graph_summary(graph: Any) -> None:
    table = Table(title="Graph")
    table.add_column("Node type", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for node_type in ("strategy", "dependency", "reference", "dimension"):
        table.add_row(node_type, str(len(graph.nodes_of_type(node_type))))
    table.add_row("edges", str(len(graph.edges)))
    console.print(table)

    dimensions = graph.nodes_of_type("dimension")
    if dimensions:
        console.print("[bold]Aligned dimensions:[/] " + ", ".join(n.label for n in dimensions))


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/] {exc}")
    raise typer.Exit(code=1)


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    load_dotenv()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)


@app.command()
def columns(
    table_path: Path = typer.Argument(..., help="CSV/TSV/Parquet/Excel file", exists=True),
) -> None:
    """List the columns of a table file."""
    from prorag.ingestion import TableIngestor

    try:
        names = TableIngestor().columns(table_path)
    except ProRAGError as e:
        _fail(e)
        return

    for name in names:
        console.print(name)


@app.command()
def ask(
    table_path: Path = typer.Argument(..., help="CSV/TSV/Parquet/Excel file", exists=True),
    question: str = typer.Argument(..., help="Question to answer"),
    dependency_col: list[str] = typer.Option(..., "--dependency-col", help="Dependency column (repeatable)"),
    strategy_col: list[str] = typer.Option(..., "--strategy-col", help="Strategy column (repeatable)"),
    reference_col: list[str] = typer.Option(..., "--reference-col", help="Reference column (repeatable)"),
    field: list[str] = typer.Option([], "--field", "-f", help="Typed field: group=value:role"),
    custom: list[str] = typer.Option([], "--custom", "-c", help="Custom field: name=value:role"),
    additional: str = typer.Option("", "--additional", "-a", help="Additional context"),
    language: str = typer.Option("en", "--language", "-l", help="Answer language (en, zh, es, ...)"),
    k: int = typer.Option(10, "-k", "--top-k", help="Units to retrieve"),
    cot: bool = typer.Option(False, "--cot", help="Chain-of-thought prompting"),
    graph: bool = typer.Option(False, "--graph", help="Show the graph over retrieved units"),
    taxonomy: Optional[str] = typer.Option(None, "--taxonomy", "-t", help="Taxonomy for graph alignment"),
    semantic: bool = typer.Option(False, "--semantic", help="Semantic dimension matching"),
    show_prompt: bool = typer.Option(False, "--show-prompt", help="Print the prompt sent to the LLM"),
) -> None:
    """Build a store from a table and answer a structured query."""
    from prorag.types import PromptMode

    payload = _build_payload(field, additional)
    custom_fields = []
    for raw in custom:
        name, value, role = _parse_assignment(raw, "--custom")
        custom_fields.append({"fieldName": name, "fieldValue": value, "fieldType": role})

    async def _run() -> None:
        rag = _create_rag(semantic)
        store_key = table_path.stem

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Embedding {table_path.name}...")
            build = await rag.build_store_from_file(
                store_key, table_path, _column_map(dependency_col, strategy_col, reference_col)
            )
            progress.update(task, description="Thinking...")
            result = await rag.query(
                store_key,
                payload,
                question,
                language,
                custom_fields,
                k,
                mode=PromptMode.CHAIN_OF_THOUGHT if cot else PromptMode.STANDARD,
            )
            progress.update(task, completed=True)

        console.print(f"[dim]Built '{store_key}': {build.unit_count} units in {build.duration_ms}ms[/]")
        if result.context and result.context.unrouted_fields:
            console.print(
                f"[yellow]Ignored fields with unknown roles: {', '.join(result.context.unrouted_fields)}[/]"
            )

        if show_prompt:
            console.print(Panel(result.used_prompt, title="Prompt", border_style="dim"))

        console.print()
        console.print(Panel(Markdown(result.answer), title="Answer", border_style="green"))

        units_table = Table(title="Retrieved units")
        units_table.add_column("#", justify="right")
        units_table.add_column("Score", justify="right", style="green")
        units_table.add_column("Strategy", style="cyan")
        units_table.add_column("Dependency", style="dim")
        units_table.add_column("Reference", style="dim")
        for item in result.retrieved_units:
            units_table.add_row(
                str(item.rank + 1),
                f"{item.score:.3f}",
                item.unit.text[:80],
                item.unit.tags.dependency,
                item.unit.tags.reference,
            )
        console.print(units_table)

        if graph:
            graph_data = await rag.build_graph(result.retrieved_units, taxonomy)
            _print_graph_summary(graph_data)

        if result.timing:
            console.print(f"\n[dim]Query time: {sum(result.timing.values())}ms[/]")

    try:
        asyncio.run(_run())
    except ProRAGError as e:
        _fail(e)


@app.command("graph")
def graph_command(
    table_path: Path = typer.Argument(..., help="CSV/TSV/Parquet/Excel file", exists=True),
    dependency_col: list[str] = typer.Option(..., "--dependency-col", help="Dependency column (repeatable)"),
    strategy_col: list[str] = typer.Option(..., "--strategy-col", help="Strategy column (repeatable)"),
    reference_col: list[str] = typer.Option(..., "--reference-col", help="Reference column (repeatable)"),
    taxonomy: Optional[str] = typer.Option(None, "--taxonomy", "-t", help="Taxonomy for alignment"),
    semantic: bool = typer.Option(False, "--semantic", help="Semantic dimension matching"),
    as_json: bool = typer.Option(False, "--json", help="Print the graph as JSON"),
) -> None:
    """Build the relationship graph over every row of a table."""
    from prorag.ingestion import DocumentComposer, TableIngestor
    from prorag.types import ColumnRoleMap

    async def _run() -> None:
        ingestor = TableIngestor()
        column_map = ColumnRoleMap.model_validate(
            _column_map(dependency_col, strategy_col, reference_col)
        )
        column_map.check()
        ingestor.require_columns(ingestor.columns(table_path), column_map)
        units = DocumentComposer().compose(
            ingestor.parse(table_path), column_map, id_prefix=table_path.stem
        )

        rag = _create_rag(semantic)
        graph_data = await rag.build_graph(units, taxonomy)

        if as_json:
            typer.echo(graph_data.model_dump_json(indent=2))
        else:
            _print_graph_summary(graph_data)

    try:
        asyncio.run(_run())
    except ProRAGError as e:
        _fail(e)


@app.command()
def chat(
    document: Path = typer.Argument(..., help="PDF, markdown or text document", exists=True),
    question: str = typer.Argument(..., help="Question to answer"),
    k: int = typer.Option(4, "-k", "--top-k", help="Chunks to retrieve"),
) -> None:
    """Quick question answering over a PDF, markdown or text document."""

    async def _run() -> None:
        rag = _create_rag()
        store_key = document.stem

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Reading {document.name}...")
            await rag.build_document_store_from_file(store_key, document)
            progress.update(task, description="Thinking...")
            result = await rag.chat(store_key, question, k)
            progress.update(task, completed=True)

        console.print()
        console.print(Panel(Markdown(result.answer), title="Answer", border_style="green"))

    try:
        asyncio.run(_run())
    except ProRAGError as e:
        _fail(e)


@app.command()
def taxonomies() -> None:
    """List available taxonomies."""
    from prorag.config import ProRAGConfig
    from prorag.graph import TaxonomyLoader

    loader = TaxonomyLoader(ProRAGConfig().taxonomy_dir)
    table = Table(title="Taxonomies")
    table.add_column("Name", style="cyan")
    table.add_column("Dimensions", justify="right", style="green")
    for name in loader.available():
        taxonomy = loader.load(name)
        table.add_row(name, str(len(taxonomy.dimensions)) if taxonomy else "invalid")
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()
