"""Command-line interface for SRT Cloud Translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import sys
from pathlib import Path

from .config import TranslatorConfig
from .coordinator import translate_document
from .llm_client import create_client
from .pipeline import build_dependencies, handle_event, output_filename
from .translator import LLMTranslationBackend

LOCAL_OUTPUT_PREFIX = "translated_"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Translate SRT subtitle files between languages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s event sample-en.srt --bucket uploads       # Simulate a storage trigger
  %(prog)s local movie-en.srt                         # Translate a local file
  %(prog)s --target de local movie-en.srt out.srt     # Override target language
        """
    )

    # Shared options
    parser.add_argument("--source", dest="source_language", help="Source language code (SOURCE_LANGUAGE)")
    parser.add_argument("--target", dest="target_language", help="Target language code (TARGET_LANGUAGE)")
    parser.add_argument("--batch-size", dest="max_batch_size", type=int, help="Max lines per request")
    parser.add_argument("--api-key", help="API key (or set DEEPSEEK_API_KEY)")
    parser.add_argument("--base-url", help="API base URL")
    parser.add_argument("--model", dest="model_name", help="Model name")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    event = sub.add_parser("event", help="Run the storage-triggered pipeline for one object")
    event.add_argument("name", help="Object name in the source bucket")
    event.add_argument("--bucket", required=True, help="Source bucket")
    event.add_argument("--target-bucket", dest="target_bucket", help="Target bucket (TARGET_BUCKET)")
    event.add_argument("--content-type", default="text/plain")
    event.add_argument("--resource-state", default="exists")

    local = sub.add_parser("local", help="Translate a local SRT file")
    local.add_argument("input_path", help="Input SRT file path")
    local.add_argument("output_path", nargs='?', default=None, help="Output SRT file path")

    return parser.parse_args(argv)


def local_output_path(in_path: Path, config: TranslatorConfig) -> Path:
    """Apply the filename rule; fall back to a prefix when the name has no language token."""
    name = output_filename(in_path.name, config.source_language, config.target_language)
    if name == in_path.name:
        name = f"{LOCAL_OUTPUT_PREFIX}{in_path.name}"
    return in_path.with_name(name)


async def run_event(args: argparse.Namespace, config: TranslatorConfig) -> int:
    """Feed a synthetic storage event through the full pipeline."""
    logger = logging.getLogger(__name__)
    deps = build_dependencies(config)
    event_data = {
        "bucket": args.bucket,
        "name": args.name,
        "resourceState": args.resource_state,
        "contentType": args.content_type,
    }
    destination = await handle_event(event_data, deps)
    if destination:
        logger.info(f"Uploaded gs://{config.target_bucket}/{destination}")
    return 0


async def run_local(args: argparse.Namespace, config: TranslatorConfig) -> int:
    """Translate a file on disk without touching object storage."""
    logger = logging.getLogger(__name__)

    in_path = Path(args.input_path).expanduser().resolve()
    if not in_path.is_file():
        logger.error(f"File not found: {in_path}")
        return 1

    content = in_path.read_text(encoding="utf-8-sig")
    if not content:
        logger.error("File is empty")
        return 1

    client = create_client(config.api_key, config.base_url, config.request_timeout)
    backend = LLMTranslationBackend(client, config.model_name, max_retries=config.max_retries)

    translated = await translate_document(
        content,
        config.source_language,
        config.target_language,
        backend,
        config.max_batch_size,
        show_progress=config.show_progress,
    )

    out_path = Path(args.output_path) if args.output_path else local_output_path(in_path, config)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(translated, encoding="utf-8")
    logger.info(f"Done! Saved to {out_path}")
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    logger = logging.getLogger(__name__)
    config = TranslatorConfig.from_args(args)

    error = config.validate(require_target_bucket=args.command == "event")
    if error:
        logger.error(error)
        return 1

    if args.command == "event":
        return await run_event(args, config)
    return await run_local(args, config)


def main() -> None:
    """CLI entry point."""
    args = parse_arguments()
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
