"""pinupload CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="pinupload",
    help="Resumable uploads for pinning services",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def parse_keyvalues(pairs: Optional[List[str]]) -> Optional[Dict[str, str]]:
    """Turn repeated ``key=value`` options into a dictionary."""
    if not pairs:
        return None
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--keyvalue")
        result[key] = value
    return result


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    url: str = typer.Option(..., "--url", "-u", help="Upload target URL"),
    network: str = typer.Option("public", "--network", help="Target network (public or private)"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
    group_id: str = typer.Option(None, "--group-id", "-g", help="Group to add the file to"),
    keyvalue: List[str] = typer.Option(None, "--keyvalue", "-k", help="Key/value tag (key=value), repeatable"),
    chunk_size: int = typer.Option(None, "--chunk-size", help="Chunk size in bytes"),
    streamable: bool = typer.Option(False, "--streamable", help="Mark the file as streamable"),
    jwt: str = typer.Option(None, "--jwt", envvar="PINATA_JWT", help="Bearer token"),
    always_chunked: bool = typer.Option(False, "--always-chunked", help="Use the chunked path for every size"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Upload a file."""
    from pinupload import UploadFacade, UploaderConfig, UploadError, setup_logging

    if verbose:
        logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
        setup_logging(logging.DEBUG)

    keyvalues = parse_keyvalues(keyvalue)
    if always_chunked:
        config = UploaderConfig.always_chunked(jwt=jwt)
    else:
        config = UploaderConfig(jwt=jwt)

    async def do_upload():
        async with UploadFacade(config) as uploader:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)

                def on_progress(percentage: float):
                    progress.update(task, completed=percentage)

                try:
                    result = await uploader.upload(
                        file_path,
                        network,
                        url,
                        name=name,
                        keyvalues=keyvalues,
                        group_id=group_id,
                        chunk_size=chunk_size,
                        streamable=streamable,
                        progress_callback=on_progress,
                    )
                except UploadError as e:
                    progress.stop()
                    console.print(f"[red]Upload failed: {escape(str(e))}[/red]")
                    raise typer.Exit(1)

            if result is None:
                console.print("[yellow]Upload cancelled[/yellow]")
                raise typer.Exit(1)

            console.print(f"[green]Uploaded:[/green] {file_path.name}")
            console.print(f"CID: {result.cid or '-'}")
            if result.file_id:
                console.print(f"File ID: {result.file_id}")
            console.print(f"Size: {result.size:,} bytes")

    run_async(do_upload())


@app.command()
def metadata(
    file_path: Path = typer.Argument(..., help="Local file", exists=True, dir_okay=False),
    network: str = typer.Option("public", "--network", help="Target network (public or private)"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
    group_id: str = typer.Option(None, "--group-id", "-g", help="Group id"),
    keyvalue: List[str] = typer.Option(None, "--keyvalue", "-k", help="Key/value tag (key=value), repeatable"),
    streamable: bool = typer.Option(False, "--streamable", help="Mark the file as streamable"),
):
    """Show the Upload-Metadata header that would be sent for a file."""
    from pinupload.core.upload import UploadOptions, Network
    from pinupload.core.upload.services import MetadataEncoder
    from pinupload.core.upload.sources import guess_content_type

    try:
        target = Network.parse(network)
    except ValueError:
        console.print(f"[red]Invalid network: {network}[/red]")
        raise typer.Exit(1)

    options = UploadOptions(
        name=name,
        keyvalues=parse_keyvalues(keyvalue),
        group_id=group_id,
        streamable=streamable
    )
    encoder = MetadataEncoder()
    file_name = name or file_path.name
    content_type = guess_content_type(file_path.name)

    table = Table()
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in encoder.pairs(file_name, content_type, target, options):
        table.add_row(key, value)
    console.print(table)

    header = encoder.encode(file_name, content_type, target, options)
    console.print(f"[bold]Upload-Length:[/bold] {file_path.stat().st_size}", soft_wrap=True)
    console.print(f"[bold]Upload-Metadata:[/bold] {header}", soft_wrap=True)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
