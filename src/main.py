# src/main.py - v2
"""CLI entry point: review, models, pricing commands.

Usage:
    casereview review <files...> [--context TEXT] [-o DIR]
    casereview models
    casereview pricing
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from casereview.version import __version__

if TYPE_CHECKING:
    from casereview.api.models import BatchResponse
    from casereview.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        from casereview.config.settings import load_settings

        settings = load_settings()
        _setup_logging(settings, args.verbose)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="casereview",
        description=f"casereview v{__version__} - court practice review from decisions",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- review ---
    p_review = subparsers.add_parser(
        "review", help="Review a batch of court decisions",
    )
    p_review.add_argument("files", type=Path, nargs="+", help="Decision files")
    p_review.add_argument(
        "-c", "--context", default=None,
        help="Reader context for the review (who reads it and why)",
    )
    p_review.add_argument(
        "-o", "--output", type=Path, default=Path("./output"),
        help="Output directory (default: ./output)",
    )
    p_review.set_defaults(func=_cmd_review)

    # --- models ---
    p_models = subparsers.add_parser(
        "models", help="Check configured step models against the provider catalog",
    )
    p_models.set_defaults(func=_cmd_models)

    # --- pricing ---
    p_pricing = subparsers.add_parser(
        "pricing", help="Show the model pricing table",
    )
    p_pricing.set_defaults(func=_cmd_pricing)

    return parser


async def _cmd_review(args: argparse.Namespace, settings: Settings) -> int:
    """Upload files, run the batch, write the outputs."""
    from casereview.api.facade import build_processor, review_files
    from casereview.api.models import BatchResponse
    from casereview.tracking.call_logger import CallLogger
    from casereview.tracking.exporter import export_calls_csv, export_cost_json, export_cost_summary

    missing = [p for p in args.files if not p.is_file()]
    if missing:
        logger.error("File not found: %s", ", ".join(str(p) for p in missing))
        return 1

    call_logger = CallLogger()
    processor = build_processor(settings, call_logger=call_logger)
    try:
        result = await review_files(
            args.files, context=args.context, settings=settings, processor=processor,
        )
    finally:
        await processor.aclose()

    output: Path = args.output
    output.mkdir(parents=True, exist_ok=True)
    response = BatchResponse.from_result(result)
    (output / "result.json").write_text(response.to_json(), encoding="utf-8")
    export_cost_json(result.cost_statistics, output / "cost_statistics.json")
    call_logger.save(output / "calls.jsonl")
    export_calls_csv(call_logger.records, output / "calls.csv")
    if settings.calls_log_path:
        call_logger.save(Path(settings.calls_log_path))
    if result.review:
        (output / "review.md").write_text(result.review, encoding="utf-8")

    _print_result_summary(response)
    print()
    print(export_cost_summary(result.cost_statistics))
    print(f"\nOutput: {output}")
    return 0 if result.error is None else 1


async def _cmd_models(args: argparse.Namespace, settings: Settings) -> int:
    """Report which configured step models exist in the provider catalog."""
    from casereview.config.steps import PIPELINE_STEPS, configured_models
    from casereview.llm.model_catalog import check_models, fetch_catalog
    from casereview.llm.transport import OpenRouterTransport

    models = configured_models(settings)
    transport = OpenRouterTransport(settings)
    try:
        catalog = await fetch_catalog(transport)
    finally:
        await transport.aclose()

    names = {s.index: s.name for s in PIPELINE_STEPS}
    checks = check_models(list(models.values()), catalog)
    missing = 0
    print(f"\nProvider catalog: {len(catalog)} models\n")
    for (step, model_id), check in zip(models.items(), checks):
        if check.found and check.entry is not None:
            print(f"  [ok]      step {step} {names[step]:18s} {model_id}")
            if check.entry.prompt_price is not None:
                print(
                    f"            prompt ${check.entry.prompt_price:.10f}/token, "
                    f"completion ${check.entry.completion_price or 0:.10f}/token"
                )
        else:
            missing += 1
            print(f"  [missing] step {step} {names[step]:18s} {model_id}")
            for alt in check.similar:
                print(f"            similar: {alt}")
    return 0 if missing == 0 else 1


async def _cmd_pricing(args: argparse.Namespace, settings: Settings) -> int:
    """Print the pricing table per 1M tokens."""
    from casereview.tracking.pricing import PricingResolver

    resolver = PricingResolver(default_model=settings.pricing_default_model)
    print(f"\n{'model':48s} {'input':>9s} {'cached':>9s} {'output':>9s}   (USD per 1M tokens)")
    for model_id, p in sorted(resolver.table.items()):
        marker = " (default)" if model_id == resolver.default_model else ""
        print(
            f"{model_id:48s} {p.input * 1e6:9.4f} {p.cached_input * 1e6:9.4f} "
            f"{p.output * 1e6:9.4f}{marker}"
        )
    return 0


def _print_result_summary(response: BatchResponse) -> None:
    """Print per-document status."""
    print("\nReview complete:" if response.success else "\nReview failed:")
    print(f"  Batch ID:   {response.batch_id}")
    for doc in response.documents:
        status = f"ERROR: {doc.error}" if doc.has_error else "ok"
        print(f"  - {doc.file_name}: {status}")
    if response.error:
        print(f"  Batch error: {response.error}")


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from casereview.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
