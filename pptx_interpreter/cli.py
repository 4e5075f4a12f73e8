"""
Command-line interface for PPTX Interpreter.

Usage:
    pptx-interpreter inventory deck.pptx --output inventory.json
    pptx-interpreter replace deck.pptx directives.json --output edited.pptx
    pptx-interpreter validate edited.pptx --baseline deck.pptx
    pptx-interpreter version
"""

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .exceptions import PptxInterpreterError
from .utils.logger import configure_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pptx-interpreter",
        description="PPTX Interpreter - inventory, replace and validate presentation text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pptx-interpreter inventory deck.pptx -o inventory.json
  pptx-interpreter replace deck.pptx directives.json -o edited.pptx
  pptx-interpreter validate edited.pptx --baseline deck.pptx
  pptx-interpreter version
        """,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Inventory command
    inventory_parser = subparsers.add_parser("inventory", help="Extract the text inventory as JSON")
    inventory_parser.add_argument("input", help="Input PPTX file")
    inventory_parser.add_argument(
        "-o", "--output",
        help="Output JSON file (default: print to stdout)"
    )
    inventory_parser.add_argument(
        "--grouped",
        action="store_true",
        help="Group paragraphs by slide and shape"
    )
    inventory_parser.add_argument(
        "--include-placeholders",
        action="store_true",
        help="Also list slide number, date and footer placeholders"
    )

    # Replace command
    replace_parser = subparsers.add_parser("replace", help="Apply replacement directives")
    replace_parser.add_argument("input", help="Input PPTX file")
    replace_parser.add_argument("directives", help="Directive JSON file")
    replace_parser.add_argument(
        "-o", "--output",
        required=True,
        help="Output PPTX file"
    )
    replace_parser.add_argument(
        "--allow-errors",
        action="store_true",
        help="Write the output even if the edits introduce validation errors"
    )
    replace_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the apply and validation report as JSON"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a presentation")
    validate_parser.add_argument("input", help="Input PPTX file")
    validate_parser.add_argument(
        "--baseline",
        help="Original PPTX file; only issues absent from it are reported"
    )
    validate_parser.add_argument(
        "--passes",
        default="schema,reference,overflow",
        help="Comma-separated passes to run (default: schema,reference,overflow)"
    )
    validate_parser.add_argument(
        "--schema-dir",
        help="Folder with OOXML XSD files for strict schema validation"
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the report as JSON"
    )

    # Version command
    subparsers.add_parser("version", help="Show version information")

    return parser


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


def _print_issues(console: Console, issues, title: str) -> None:
    if not issues:
        console.print("✅ No issues found")
        return
    table = Table(title=title)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Location", overflow="fold")
    table.add_column("Message", overflow="fold")
    for issue in issues:
        message = issue.message if issue.overflow is None else f"{issue.message} by {issue.overflow:.1f} pt"
        table.add_row(issue.severity.value, issue.category.value, escape(issue.location), escape(message))
    console.print(table)


def cmd_inventory(args):
    """Handle inventory command."""
    from .api import extract_inventory, open_presentation
    from .export import InventoryExporter
    from .options import PipelineOptions

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    options = PipelineOptions(skip_placeholder_types=()) if args.include_placeholders else PipelineOptions()
    document = open_presentation(input_path, options)
    records = extract_inventory(document)
    exporter = InventoryExporter(records, grouped=args.grouped)

    if args.output:
        output_path = exporter.export(args.output, source=str(input_path))
        console = _console()
        console.print(f"📄 Opened: {escape(str(input_path))}")
        console.print(f"✅ Saved: {escape(str(output_path))} ({len(records)} paragraphs)")
    else:
        print(exporter.to_json(source=str(input_path)))
    return 0


def cmd_replace(args):
    """Handle replace command."""
    from .api import EditSession
    from .models.directive import load_directives

    input_path = Path(args.input)
    directives_path = Path(args.directives)
    for path in (input_path, directives_path):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    directives = load_directives(directives_path)
    session = EditSession(input_path)
    report = session.apply(directives)
    outcome = session.save(args.output, allow_errors=args.allow_errors)

    if args.json:
        print(json.dumps({
            "written": outcome.written,
            "output": str(outcome.path) if outcome.path else None,
            "apply": report.to_dict(),
            "regressions": outcome.regressions.to_list(),
        }, indent=2, ensure_ascii=False))
    else:
        console = _console()
        console.print(f"📄 Opened: {escape(str(input_path))}")
        console.print(f"✏️  Applied {len(report.applied)} of {len(directives)} directives")
        for finding in report.unresolved:
            console.print(f"⚠️  Unresolved {escape(finding.locator)}: {escape(finding.reason)}")
        if report.superseded:
            console.print(f"ℹ️  {len(report.superseded)} directives superseded by later ones")
        _print_issues(console, outcome.regressions, "New validation issues")
        if outcome.written:
            console.print(f"✅ Saved: {escape(str(outcome.path))}")
        else:
            console.print("❌ Not written: the edits introduced validation errors (use --allow-errors)")

    if not outcome.written or report.unresolved:
        return 1
    return 0


def cmd_validate(args):
    """Handle validate command."""
    from .api import check_regressions, open_presentation, validate
    from .options import PipelineOptions

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    baseline_path = Path(args.baseline) if args.baseline else None
    if baseline_path is not None and not baseline_path.exists():
        print(f"Error: File not found: {baseline_path}", file=sys.stderr)
        return 1

    passes = [name.strip() for name in args.passes.split(",") if name.strip()]
    options = PipelineOptions(schema_dir=args.schema_dir)
    result = validate(open_presentation(input_path, options), passes)
    issues = result.issues
    if baseline_path is not None:
        baseline = validate(open_presentation(baseline_path, options), passes)
        issues = check_regressions(baseline, result)

    if args.json:
        print(json.dumps(issues.to_list(), indent=2, ensure_ascii=False))
    else:
        title = "New validation issues" if baseline_path else "Validation issues"
        _print_issues(_console(), issues, title)

    return 1 if issues else 0


def cmd_version(args=None):
    """Handle version command."""
    from . import __version__
    print(f"PPTX Interpreter v{__version__}")
    print("Inventory, replacement and validation for PresentationML text")
    return 0


def main(argv=None):
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else "WARNING")

    # Handle --version flag
    if args.version:
        return cmd_version()

    commands = {
        "inventory": cmd_inventory,
        "replace": cmd_replace,
        "validate": cmd_validate,
        "version": cmd_version,
    }
    handler = commands.get(args.command)
    if handler is None:
        # No command specified, show help
        parser.print_help()
        return 0

    try:
        return handler(args)
    except (PptxInterpreterError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
