"""
Command-line interface for HTML page translation
"""
import argparse
import asyncio
import json
import logging
import os
import sys

# Reduce verbosity of httpx (avoid logging every request line)
logging.getLogger('httpx').setLevel(logging.WARNING)

from page_translator.config import (DEFAULT_MODEL, API_ENDPOINT, LLM_PROVIDER, OPENAI_API_KEY,
                                    DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE,
                                    MAX_CONCURRENT_REQUESTS, DEBUG_MODE, TranslationConfig)
from page_translator.core.dom.html_io import find_body, parse_document
from page_translator.core.dom.page_translator import TranslationStatus, translate_html
from page_translator.core.dom.session import ExtractionSession
from page_translator.core.llm_client import create_llm_client_from_config
from page_translator.utils.file_utils import (default_output_path, get_unique_output_path,
                                              read_html_file, write_text_file)
from page_translator.utils.unified_logger import setup_cli_logger, LogType


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate an HTML page using an LLM, keeping its markup intact.")
    parser.add_argument("-i", "--input", required=True, help="Path to the input HTML file.")
    parser.add_argument("-o", "--output", default=None, help="Path to the output file. If not specified, uses input filename with the target language as suffix.")
    parser.add_argument("-sl", "--source_lang", default=DEFAULT_SOURCE_LANGUAGE, help="Source language ('auto' or empty to detect; default: %(default)r).")
    parser.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, help=f"Target language (default: {DEFAULT_TARGET_LANGUAGE}).")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"LLM model (default: {DEFAULT_MODEL}).")
    parser.add_argument("--api_endpoint", default=API_ENDPOINT, help=f"API endpoint for Ollama or OpenAI-compatible servers (default: {API_ENDPOINT}).")
    parser.add_argument("--provider", default=LLM_PROVIDER, choices=["ollama", "openai"], help=f"LLM provider (default: {LLM_PROVIDER}). Use 'openai' for any OpenAI-compatible server.")
    parser.add_argument("--openai_api_key", default=OPENAI_API_KEY, help="OpenAI API key (required for OpenAI cloud, not needed for local servers).")
    parser.add_argument("--concurrency", type=int, default=MAX_CONCURRENT_REQUESTS, help="Units translated at the same time (default: %(default)s).")
    parser.add_argument("--no-stream", action="store_true", help="Request complete responses instead of streamed ones.")
    parser.add_argument("--extract-only", action="store_true", help="Print the extracted content units as JSON and exit.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    return parser


def extract_units_json(html: str) -> str:
    """Extracted units of a document, as the JSON printed by --extract-only."""
    doc_root = parse_document(html)
    root = find_body(doc_root)
    session = ExtractionSession(root if root is not None else doc_root)
    units = session.extract()
    return json.dumps({
        'pass_id': session.pass_id,
        'units': [unit.to_dict() for unit in units],
    }, ensure_ascii=False, indent=2)


async def run_translation(args, config: TranslationConfig, logger) -> bool:
    """Translate args.input into args.output. Returns True on success."""
    log_callback = logger.create_legacy_callback()

    def stats_callback(stats: dict):
        total = stats.get('total_units', 0)
        if total > 0:
            logger.update_progress(stats.get('processed_units', 0), total)

    def status_callback(status: TranslationStatus):
        logger.debug(f"Status: {status.value}")

    html = read_html_file(args.input)
    llm_client = create_llm_client_from_config(config, log_callback=log_callback)
    try:
        translated_html, report, stats = await translate_html(
            html, llm_client, config,
            log_callback=log_callback,
            stats_callback=stats_callback,
            status_callback=status_callback,
        )
    finally:
        await llm_client.close()

    write_text_file(args.output, translated_html)

    summary = report.summary()
    logger.info("Translation Completed", LogType.TRANSLATION_END, {
        'output_file': args.output,
        'applied_units': summary['applied'],
        'untranslated_units': stats.failed_units,
        'warnings': summary['warnings'],
    })
    return True


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not os.path.isfile(args.input):
        parser.error(f"Input file not found: {args.input}")
    if args.concurrency < 1:
        parser.error("--concurrency must be at least 1")

    if args.extract_only:
        print(extract_units_json(read_html_file(args.input)))
        return 0

    if args.output is None:
        args.output = default_output_path(args.input, args.target_lang)

    # Ensure output path is unique (add number suffix if file exists)
    args.output = get_unique_output_path(args.output)

    logger = setup_cli_logger(enable_colors=not args.no_color, debug=DEBUG_MODE)
    config = TranslationConfig.from_cli_args(args)

    logger.info("Translation Started", LogType.TRANSLATION_START, {
        'source_lang': args.source_lang or 'auto',
        'target_lang': args.target_lang,
        'model': args.model,
        'input_file': args.input,
        'output_file': args.output,
        'api_endpoint': args.api_endpoint,
        'llm_provider': args.provider,
    })

    try:
        asyncio.run(run_translation(args, config, logger))
    except Exception as e:
        logger.error(f"Translation failed: {str(e)}", LogType.ERROR_DETAIL, {
            'details': str(e),
            'input_file': args.input
        })
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
