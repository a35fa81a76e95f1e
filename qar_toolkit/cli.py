"""QAR Toolkit CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .errors import QARError

DICTIONARY_HELP = "Name dictionary, one path per line (env: QAR_DICTIONARY)"


def load_name_map(dictionary: Optional[Path]):
    """Build the name map used to resolve entry names."""
    from .hashing import EntryNameMap

    if dictionary is None:
        return EntryNameMap()
    return EntryNameMap.from_file(dictionary)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log archive parsing details")
def main(verbose: bool):
    """QAR Toolkit - Inspect and extract Fox Engine QAR archives.

    Entries are stored under 64-bit hashes. Supply a name dictionary to
    turn them back into paths; unknown names are shown as hex.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("list")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-d",
    "--dictionary",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="QAR_DICTIONARY",
    help=DICTIONARY_HELP,
)
def list_entries(archive: Path, dictionary: Optional[Path]):
    """List the entries of a QAR archive."""
    from .qar import QARArchive

    try:
        name_map = load_name_map(dictionary)
        with QARArchive.from_path(archive, name_map=name_map) as reader:
            entries = reader.entries
            click.echo(f"QAR v{reader.version}, {len(entries)} entries")
            click.echo()
            for entry in entries:
                flags = ("C" if entry.compressed else "-") + ("E" if entry.content_header.encrypted else "-")
                click.echo(
                    f"  {entry.hash:016X}  {entry.length:>10}  {entry.compressed_length:>10}  {flags}  {entry.full_name}"
                )

    except (QARError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: <archive_name>_extracted)",
)
@click.option(
    "-d",
    "--dictionary",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="QAR_DICTIONARY",
    help=DICTIONARY_HELP,
)
def extract(archive: Path, output: Optional[Path], dictionary: Optional[Path]):
    """Extract every entry of a QAR archive."""
    from .qar import QARArchive

    click.echo(f"Opening: {archive}")

    try:
        name_map = load_name_map(dictionary)
        with QARArchive.from_path(archive, name_map=name_map) as reader:
            if output is None:
                output = archive.parent / f"{archive.stem}_extracted"

            click.echo(f"Output:  {output}")
            click.echo()

            extracted_count = 0
            with click.progressbar(
                reader.extract_all(output),
                length=len(reader.entries),
                label="Extracting",
                item_show_func=lambda x: x[0] if x else "",
            ) as items:
                for _ in items:
                    extracted_count += 1

            click.echo()
            click.echo(f"Extracted: {extracted_count} files")

    except (QARError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("hash")
@click.argument("paths", nargs=-1, required=True)
def hash_paths(paths):
    """Print the hashes of one or more paths."""
    from .hashing import hash_path, hash_path_without_extension

    for path in paths:
        click.echo(f"{hash_path(path):016X}  {hash_path_without_extension(path):016X}  {path}")


if __name__ == "__main__":
    main()
