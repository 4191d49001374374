"""CLI entry point for textframe.

Prints an excerpt of a (large) UTF-8 text file addressed by character, line
or byte offsets, building or reusing a side-car position index.

Usage:
    textframe corpus.txt --begin 1000 --end 1200
    textframe corpus.txt --begin -500            # last 500 characters
    textframe corpus.txt --lines --begin 10 --end 20
    textframe corpus.txt --bytes --begin 0 --end 4096
    textframe corpus.txt --info
    textframe --config textframe.yaml corpus.txt --begin 0 --end 80
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from .config import ConfigError, TextFrameConfig, apply_env_overrides, load_config
from .errors import TextFrameError
from .index import TextFileMode
from .textfile import TextFile

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _load_settings(args: argparse.Namespace) -> TextFrameConfig:
    """Merge config file, environment and CLI flags.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed CLI arguments.

    Returns
    -------
    TextFrameConfig
        Effective configuration.

    Raises
    ------
    FileNotFoundError
        If ``--config`` points to a missing file.
    ConfigError
        If the config file or the environment holds invalid values.
    """
    config = load_config(args.config) if args.config else TextFrameConfig()
    apply_env_overrides(config)

    if args.checkpoint_interval is not None:
        if args.checkpoint_interval < 1:
            raise ConfigError("--checkpoint-interval must be a positive integer")
        config.index.checkpoint_interval = args.checkpoint_interval
    if args.no_line_index:
        config.index.line_index = False
    if args.no_cache:
        config.index.cache = False
    if args.verbose:
        config.logging.level = "DEBUG"
    return config


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format=_LOG_FORMAT)


def _open_textfile(args: argparse.Namespace, config: TextFrameConfig) -> TextFile:
    """Open the text file named on the command line.

    An explicit ``--index-file`` wins over the configured cache location.
    """
    path: Path = args.file
    if not path.is_file():
        raise FileNotFoundError(f"Text file not found: {path}")
    if args.index_file is not None:
        mode = TextFileMode.WITH_LINE_INDEX if config.index.line_index else TextFileMode.NO_LINE_INDEX
        return TextFile(path, args.index_file, mode, config.index.checkpoint_interval)
    return TextFile.from_config(path, config)


def _read_excerpt(textfile: TextFile, args: argparse.Namespace) -> str:
    """Load the excerpt selected by ``--begin``/``--end`` and the unit flags."""
    if args.lines:
        return textfile.get_or_load_lines(args.begin, args.end)
    if args.bytes:
        end = textfile.byte_count if args.end == 0 else args.end
        return textfile.get_or_load_bytes(args.begin, end)
    return textfile.get_or_load(args.begin, args.end)


def _print_info(textfile: TextFile) -> None:
    """Print index statistics for a text file."""
    click.echo(click.style(f"{textfile.path}", bold=True, fg="cyan"))
    click.echo(f"  characters:  {textfile.char_count:,}")
    click.echo(f"  bytes:       {textfile.byte_count:,}")
    if textfile.mode is TextFileMode.WITH_LINE_INDEX:
        click.echo(f"  lines:       {textfile.line_count:,}")
    else:
        click.echo("  lines:       (no line index)")
    index = textfile.index
    click.echo(
        f"  checkpoints: {len(index.checkpoints):,} (every {index.checkpoint_interval:,} chars)"
    )
    click.echo(f"  sha256:      {textfile.checksum_digest}")
    if textfile.index_path is not None:
        click.echo(f"  index file:  {textfile.index_path}")


def main() -> int:
    """Main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="textframe",
        description="Print excerpts of large UTF-8 text files by character, line or byte offset",
    )
    parser.add_argument(
        "file",
        type=Path,
        help="Text file to read",
    )
    parser.add_argument(
        "--begin",
        type=int,
        default=0,
        help="Begin offset; negative counts from the end (default: 0)",
    )
    parser.add_argument(
        "--end",
        type=int,
        default=0,
        help="End offset, exclusive; 0 means the end of the text (default: 0)",
    )
    unit = parser.add_mutually_exclusive_group()
    unit.add_argument(
        "--lines",
        action="store_true",
        help="Interpret --begin/--end as 0-indexed line numbers",
    )
    unit.add_argument(
        "--bytes",
        action="store_true",
        help="Interpret --begin/--end as absolute byte offsets",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print character/byte/line counts and the checksum instead of text",
    )
    parser.add_argument(
        "--index-file",
        type=Path,
        default=None,
        help="Side-car index file to use as cache",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or write a side-car index file",
    )
    parser.add_argument(
        "--no-line-index",
        action="store_true",
        help="Do not build a line index (line queries become unavailable)",
    )
    parser.add_argument(
        "--checkpoint-interval",
        type=int,
        default=None,
        help="Characters between index checkpoints (default: 4096)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    args = parser.parse_args()
    load_dotenv()

    try:
        config = _load_settings(args)
    except (FileNotFoundError, ConfigError) as e:
        click.echo(f"Config error: {e}", err=True)
        return 1

    _configure_logging(config.logging.level)

    try:
        textfile = _open_textfile(args, config)
    except (TextFrameError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        return 1

    if args.info:
        _print_info(textfile)
        return 0

    try:
        text = _read_excerpt(textfile, args)
    except TextFrameError as e:
        click.echo(f"Error: {e}", err=True)
        return 1

    click.echo(text, nl=False)
    return 0


def _get_version() -> str:
    """Get the package version.

    Returns
    -------
    str
        Version string.
    """
    from . import __version__

    return __version__
