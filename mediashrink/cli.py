"""
mediashrink.cli
~~~~~~~~~~~~~~~
Headless front end: compress one file from the command line.

    mediashrink clip.mov -q low -f mp4 -r 1280:720
    mediashrink photo.png -f webp -o small.webp

Runs a QCoreApplication event loop around a CompressionSession so the job
executes on a worker thread exactly as it would under a GUI.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication

from mediashrink.config import load_settings, save_settings
from mediashrink.errors import CompressionError
from mediashrink.models import CompressionResult, JobState, JobStatus, MediaKind, QualityTier
from mediashrink.presets import FORMATS, RESOLUTIONS
from mediashrink.session import CompressionSession
from mediashrink.utils import format_file_size, format_time
from mediashrink.validation import guess_kind, parse_kind, parse_settings

EXIT_OK, EXIT_FAILED, EXIT_USAGE = 0, 1, 2


def _choices_help(table: dict[MediaKind, list], lead: str) -> str:
    per_kind = "; ".join(
        f"{kind.value}: {', '.join(option.value for option in options)}"
        for kind, options in table.items()
    )
    return f"{lead} ({per_kind})"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mediashrink",
        description="Compress a video or image with ffmpeg.",
    )
    parser.add_argument("input", type=Path, help="file to compress")
    parser.add_argument("-k", "--kind", choices=["video", "image"],
                        help="media kind (default: guessed from the file type)")
    parser.add_argument("-q", "--quality", choices=[t.value for t in QualityTier],
                        help="quality tier (default: last used, else medium)")
    parser.add_argument("-f", "--format", help=_choices_help(FORMATS, "output format"))
    parser.add_argument("-r", "--resolution",
                        help=_choices_help(RESOLUTIONS, "'original' or any W:H"))
    parser.add_argument("-o", "--output", type=Path,
                        help="output path (default: <input>_compressed.<format>)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        kind  = parse_kind(args.kind) if args.kind else guess_kind(args.input.name)
        saved = load_settings(kind)
        settings = parse_settings(kind, {
            "quality":    args.quality or saved.quality.value,
            "format":     args.format or saved.output_format,
            "resolution": args.resolution or saved.resolution,
        })
    except CompressionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    session = CompressionSession()

    def on_state(state: JobState) -> None:
        if state.status is JobStatus.LOADING:
            print("Loading engine…", flush=True)
        elif state.status is JobStatus.PROCESSING:
            print(f"\rCompressing… {state.progress * 100:5.1f}%", end="", flush=True)
        elif state.status is JobStatus.ERROR:
            print(f"\nerror: {state.error}", file=sys.stderr)
            app.exit(EXIT_FAILED)

    def on_result(result: CompressionResult) -> None:
        output = args.output or args.input.with_name(
            f"{args.input.stem}_compressed.{result.output_format}"
        )
        try:
            output.write_bytes(result.data)
        except OSError as exc:
            print(f"\nerror: could not write {output}: {exc}", file=sys.stderr)
            app.exit(EXIT_FAILED)
            return

        save_settings(kind, settings)
        print()
        if result.downscaled_to:
            print(f"Downscaled to {result.downscaled_to} to fit the memory budget")
        print(f"{format_file_size(result.original_size)} → "
              f"{format_file_size(result.compressed_size)} "
              f"({result.compression_ratio * 100:.1f}% smaller) "
              f"in {format_time(result.elapsed_seconds)}")
        print(f"Wrote {output} ({result.mime_type})")
        app.exit(EXIT_OK)

    session.state_changed.connect(on_state)
    session.result_ready.connect(on_result)

    try:
        session.start(kind, args.input, settings)
    except CompressionError:
        # already reported through on_state
        return EXIT_USAGE

    code = app.exec()
    session.shutdown()
    return code


if __name__ == "__main__":
    sys.exit(main())
