"""CLI interface for the transcoding batch."""
import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple

from domain.models import CommonFlags, EXIT_USAGE, EXIT_INTERRUPTED
from domain.exceptions import UsageError
from infrastructure.config import ConfigLoader, OUTPUT_FORMATS
from infrastructure.media.ffmpeg import FFmpegRunner
from application.batch import BatchDriver, iter_inputs
from presentation.reporter import create_reporter
from shared.cancellation import CancellationToken, cancel_on_signals
from shared.logging import setup_logger, get_logger

EXTRA_ARGS_SEPARATOR = "--"


def split_extra_args(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split ``argv`` at the first ``--``; everything after it goes to the engine verbatim."""
    argv = list(argv)
    if EXTRA_ARGS_SEPARATOR in argv:
        idx = argv.index(EXTRA_ARGS_SEPARATOR)
        return argv[:idx], argv[idx + 1:]
    return argv, []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ffrenc",
        description="Re-encode videos with ffmpeg, one after another, with live progress.",
        epilog="Arguments after '--' are passed to ffmpeg before the output path.",
    )
    parser.add_argument('--input', '-i', required=True,
                        help="Input file, or '-' to read newline-separated paths from stdin")
    parser.add_argument('--output', '-o',
                        help="Output path template; {SLUG} expands to the input file name "
                             "(default: <stem>.renc.mp4)")
    parser.add_argument('--no-audio', action='store_true', help='Drop the audio streams')
    parser.add_argument('--no-video', action='store_true', help='Drop the video streams')
    parser.add_argument('--overwrite', '-y', action='store_true', help='Overwrite existing outputs')
    parser.add_argument('--format', '-f', choices=OUTPUT_FORMATS, help='Progress output format (default: human)')
    parser.add_argument('--config', '-c', type=Path, help='Config YAML file (default: ./ffrenc.yaml if present)')
    parser.add_argument('--engine', help='Engine command (default: ffmpeg)')
    parser.add_argument('--timeout', type=float, help='Per-job timeout in seconds (default: none)')
    parser.add_argument('--log-file', type=Path, help='Also write logs to this file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose')
    return parser


def main(argv: Optional[Sequence[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Main CLI entry point."""
    own_args, extra_args = split_extra_args(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own_args)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(level=log_level)
    logger = get_logger(__name__)

    try:
        config = ConfigLoader(config_path=args.config).load(overrides={
            'output_template': args.output,
            'output_format': args.format,
            'engine': args.engine,
            'job_timeout': args.timeout,
            'log_file': args.log_file,
            'overwrite': True if args.overwrite else None,
        })
    except UsageError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_USAGE

    if config.log_file:
        setup_logger(level=log_level, log_file=config.log_file)

    try:
        runner = FFmpegRunner(config.engine, poll_interval=config.poll_interval)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_USAGE
    if not runner.is_available():
        logger.warning(f"Engine not found on PATH: {runner.command[0]}")

    flags = CommonFlags(
        output_template=config.output_template,
        strip_audio=args.no_audio,
        strip_video=args.no_video,
        overwrite=config.overwrite,
        extra_args=tuple(extra_args),
    )
    logger.debug(f"Flags: {flags}")

    token = CancellationToken()
    try:
        with cancel_on_signals(token):
            driver = BatchDriver(
                runner=runner,
                reporter=create_reporter(config.output_format),
                cancel_token=token,
                tail_lines=config.tail_lines,
                job_timeout=config.job_timeout,
            )
            result = driver.run(iter_inputs(args.input, stdin), flags)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED

    if not result.outcomes and not result.cancelled:
        logger.error("No inputs specified")
        return EXIT_USAGE

    if result.cancelled:
        logger.warning("Interrupted, remaining inputs were not processed")
    elif not result.all_succeeded:
        logger.error(f"{len(result.failures)} of {len(result.outcomes)} jobs failed")
        for outcome in result.failures:
            logger.error(f"  - {outcome.input_path}: [{outcome.error_kind.value}] {outcome.message}")

    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
