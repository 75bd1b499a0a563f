"""CLI entry point: python -m confluence2md [options] <input.doc> | --dir DIR"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from confluence2md import __version__
from confluence2md.converters import Converter, build_converter
from confluence2md.errors import Confluence2MdError
from confluence2md.items import ConvertedDocument
from confluence2md.query import check_converter, convert_document, output_path_for, sniff
from confluence2md.settings import Settings, load_settings

logger = logging.getLogger(__name__)

_EPILOG = """\
Examples:
  confluence2md document.doc                    Convert single file
  confluence2md document.doc -o output.md       Convert with custom output
  confluence2md --dir ./docs                    Convert all .doc files in directory
  confluence2md --dir ./docs --dry-run          Preview conversions
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confluence2md",
        description="Convert Confluence MIME exports (.doc) to Markdown.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", nargs="?", default=None, metavar="INPUT",
                        help="Confluence .doc export to convert")
    parser.add_argument("-o", "--output", default=None, metavar="FILE",
                        help="Output file path (default: input with .md extension)")
    parser.add_argument("--dir", default=None, metavar="DIR",
                        help="Convert all .doc files in directory")
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Verbose output")
    parser.add_argument("--dry-run", action="store_true", default=False,
                        help="Show what would be converted without writing")
    parser.add_argument("--config", default=None, metavar="FILE",
                        help="YAML config file (default: $CONFLUENCE2MD_CONFIG)")
    parser.add_argument("--converter", choices=["auto", "pandoc", "markdownify"],
                        default=None, metavar="{auto,pandoc,markdownify}",
                        help="HTML to Markdown backend (default: auto)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    parser.add_argument("--version", action="store_true", default=False,
                        help="Show version")
    return parser


def _print_banner(args: argparse.Namespace, converter: Converter) -> None:
    target = args.dir or args.input
    try:
        from rich.console import Console
        from rich.panel import Panel

        Console().print(
            Panel.fit(
                f"[bold cyan]confluence2md[/bold cyan] {__version__}\n"
                f"Input:      [green]{target}[/green]\n"
                f"Mode:       {'directory' if args.dir else 'single file'}\n"
                f"Converter:  {converter.name}\n"
                f"Dry run:    {'yes' if args.dry_run else 'no'}",
                border_style="cyan",
                title="[bold]Configuration[/bold]",
            ),
        )
    except ImportError:
        print(f"confluence2md {__version__} | Input: {target} | Converter: {converter.name}")


def _print_summary(done: list[ConvertedDocument], failed: list[tuple[Path, str]]) -> None:
    try:
        from rich import box
        from rich.console import Console
        from rich.rule import Rule
        from rich.table import Table

        console = Console()
        console.print()
        console.print(Rule("[bold cyan]Conversion Summary[/bold cyan]"))
        if done:
            tbl = Table(box=box.SIMPLE_HEAVY, show_lines=False)
            tbl.add_column("#",         style="dim",   justify="right", width=4, no_wrap=True)
            tbl.add_column("File",      style="cyan",  max_width=48,             no_wrap=True)
            tbl.add_column("HTML",      justify="right", width=9,                no_wrap=True)
            tbl.add_column("Lines",     justify="right", width=7,                no_wrap=True)
            tbl.add_column("Converter", style="dim",   width=12,                 no_wrap=True)
            for i, doc in enumerate(done, 1):
                tbl.add_row(
                    str(i),
                    Path(doc.source_path).name[:45],
                    f"{doc.html_chars:,}",
                    str(doc.line_count),
                    doc.converter,
                )
            console.print(tbl)
        if failed:
            ftbl = Table(
                title=f"[bold yellow]Failed ({len(failed)})[/bold yellow]",
                box=box.SIMPLE_HEAVY,
            )
            ftbl.add_column("File",   style="blue", max_width=40, no_wrap=True)
            ftbl.add_column("Reason", style="red",  max_width=60)
            for path, reason in failed:
                ftbl.add_row(path.name, reason)
            console.print(ftbl)
    except ImportError:
        for path, reason in failed:
            print(f"  failed: {path.name}: {reason}")


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def _convert_file(
    input_path: Path,
    output_path: Path,
    converter: Converter,
    settings: Settings,
    *,
    verbose: bool,
    dry_run: bool,
) -> ConvertedDocument | None:
    """Convert one export and write it.  Returns None on a dry run."""
    if verbose:
        print(f"Converting: {input_path} -> {output_path}")
    if dry_run:
        print(f"[dry-run] Would convert: {input_path} -> {output_path}")
        return None

    if not input_path.exists():
        raise Confluence2MdError(f"input file does not exist: {input_path}", path=str(input_path), stage="read")
    if not sniff(input_path):
        raise Confluence2MdError(
            f"file does not appear to be a Confluence MIME export: {input_path}",
            path=str(input_path),
            stage="sniff",
        )

    doc = convert_document(input_path, settings=settings, converter=converter)
    try:
        output_path.write_text(doc.markdown, encoding="utf-8")
    except OSError as exc:
        raise Confluence2MdError(f"failed to write output: {exc}", path=str(output_path), stage="write") from exc

    if verbose:
        print(f"  Done: {output_path}")
    else:
        print(f"Converted: {input_path.name} -> {output_path.name}")
    return doc


def _convert_directory(
    directory: Path,
    converter: Converter,
    settings: Settings,
    *,
    verbose: bool,
    dry_run: bool,
) -> int:
    if not directory.is_dir():
        print(f"Error: not a directory: {directory}", file=sys.stderr)
        return 1

    matches = sorted(directory.glob("*.doc"))
    if not matches:
        print("No .doc files found in directory")
        return 0

    exports: list[Path] = []
    for match in matches:
        try:
            is_export = sniff(match)
        except Confluence2MdError as exc:
            if verbose:
                print(f"Skipping (error reading file): {match}: {exc}")
            continue
        if is_export:
            exports.append(match)
        elif verbose:
            print(f"Skipping (not Confluence MIME): {match}")

    if not exports:
        print("No Confluence MIME exports found in directory")
        return 0

    print(f"Found {len(exports)} Confluence export(s) to convert")

    done: list[ConvertedDocument] = []
    failed: list[tuple[Path, str]] = []
    success = 0
    for input_path in exports:
        try:
            doc = _convert_file(
                input_path,
                output_path_for(input_path),
                converter,
                settings,
                verbose=verbose,
                dry_run=dry_run,
            )
        except Confluence2MdError as exc:
            logger.warning("Failed to convert %s: %s", input_path, exc)
            print(f"Warning: failed to convert {input_path}: {exc}", file=sys.stderr)
            failed.append((input_path, str(exc)))
            continue
        success += 1
        if doc is not None:
            done.append(doc)

    print(f"\nConverted {success}/{len(exports)} files")
    if not dry_run:
        _print_summary(done, failed)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"confluence2md {__version__}")
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.dir and not args.input:
        print(
            "confluence2md - Convert Confluence MIME exports to Markdown\n\n"
            "Usage:\n"
            "  confluence2md [flags] <input.doc>\n"
            "  confluence2md --dir <directory>\n\n"
            "Run 'confluence2md --help' for more information.",
            file=sys.stderr,
        )
        return 1

    try:
        settings = load_settings(args.config, backend=args.converter)
        check_converter(settings)
        converter = build_converter(settings)
    except Confluence2MdError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        _print_banner(args, converter)

    if args.dir:
        return _convert_directory(
            Path(args.dir),
            converter,
            settings,
            verbose=args.verbose,
            dry_run=args.dry_run,
        )

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else output_path_for(input_path)
    try:
        _convert_file(
            input_path,
            output_path,
            converter,
            settings,
            verbose=args.verbose,
            dry_run=args.dry_run,
        )
    except Confluence2MdError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
