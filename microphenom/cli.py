"""CLI entry point.

Subcommands::

    microphenom record [--device NAME] [--out FILE]
    microphenom analyze-text FILE|- [--out FILE]
    microphenom devices [--match TEXT]
    microphenom guide
    microphenom serve [--host HOST] [--port PORT]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from microphenom.core.config import get_settings
from microphenom.core.exceptions import DeviceUnavailableError
from microphenom.core.models import AnalysisResult, SessionSnapshot
from microphenom.core.utils import format_duration
from microphenom.services.analysis import create_analysis_client
from microphenom.services.audio import AudioCapture, SoundDeviceStreamFactory, WavEncoder
from microphenom.services.audio.recorder import list_input_devices
from microphenom.services.session import InterviewSession
from microphenom.ui.guide import render_guide
from microphenom.ui.report import render_markdown

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="microphenom",
        description="Record or paste a micro-phenomenological interview and analyze it.",
    )
    sub = parser.add_subparsers(dest="command")

    record_cmd = sub.add_parser("record", help="Record an interview and analyze it.")
    record_cmd.add_argument("--device", help="Preferred input device name substring.")
    record_cmd.add_argument("--out", help="Write the result to FILE (.md or .json).")

    text_cmd = sub.add_parser("analyze-text", help="Analyze a written transcript.")
    text_cmd.add_argument("path", help="Transcript file, or - for stdin.")
    text_cmd.add_argument("--out", help="Write the result to FILE (.md or .json).")

    devices_cmd = sub.add_parser("devices", help="List microphones.")
    devices_cmd.add_argument("--match", help="Filter device names by substring.")

    sub.add_parser("guide", help="Print the interviewer guide.")

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API.")
    serve_cmd.add_argument("--host", help="Bind address.")
    serve_cmd.add_argument("--port", type=int, help="Port.")
    return parser


def write_result(
    result: AnalysisResult,
    out: str | None,
    duration_seconds: int | None = None,
) -> str:
    """Render the report, optionally saving it, and return the Markdown."""
    report = render_markdown(result, duration_seconds=duration_seconds)
    if out:
        path = Path(out)
        if path.suffix.lower() == ".json":
            path.write_text(
                json.dumps(result.to_payload(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        else:
            path.write_text(report, encoding="utf-8")
        logger.info("Result written to %s", path)
    return report


async def _ask(prompt: str) -> str:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return "q"


class _WelcomePrinter:
    """Session observer that prints the welcome message once it arrives."""

    def __init__(self) -> None:
        self._shown = False

    async def __call__(self, snapshot: SessionSnapshot) -> None:
        if snapshot.welcome_message and not self._shown:
            self._shown = True
            print(f'\nAI Guide: "{snapshot.welcome_message}"\n')


def _level_bar(level: float, width: int = 20) -> str:
    # Speech RMS rarely exceeds 0.2, so scale it to fill the bar
    filled = round(min(1.0, level * 5) * width)
    return "#" * filled + "." * (width - filled)


def _print_tick(seconds: int, level: float) -> None:
    sys.stdout.write(f"\r  recording {format_duration(seconds)}  [{_level_bar(level)}]")
    sys.stdout.flush()


async def _record(args: argparse.Namespace) -> int:
    settings = get_settings()
    encoder = WavEncoder(
        sample_rate=settings.audio_sample_rate,
        channels=settings.audio_channels,
    )
    factory = SoundDeviceStreamFactory(
        sample_rate=settings.audio_sample_rate,
        channels=settings.audio_channels,
        device_name=args.device or settings.audio_device,
    )
    capture = AudioCapture(
        stream_factory=factory,
        encoder=encoder,
        on_tick=lambda seconds: _print_tick(seconds, capture.level),
    )
    session = InterviewSession(create_analysis_client(), capture)
    session.subscribe(_WelcomePrinter())

    async with session:
        print("Connecting to AI guide...")
        while True:
            answer = await _ask("Press Enter to start recording (q to quit): ")
            if answer.strip().lower() == "q":
                return 0
            if await session.start():
                break
            print(f"Warning: {session.warning}")

        await _ask("Recording. Press Enter to stop and analyze.\n")
        artifact = await session.stop()
        if artifact is None:
            return 1
        print(f"\nStopped after {format_duration(artifact.duration_seconds)}.")
        if session.warning:
            print(f"Warning: {session.warning}")
            answer = await _ask("Analyze anyway? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                await session.cancel()
                return 1
        print("Analyzing...")

        while True:
            result = await session.submit()
            if result is not None:
                print(write_result(result, args.out, artifact.duration_seconds))
                return 0
            print(f"Analysis failed: {session.error.detail}")
            answer = await _ask("Retry analysis without re-recording? [Y/n] ")
            if answer.strip().lower() in ("n", "no", "q"):
                return 1
            await session.retry()


async def _analyze_text(args: argparse.Namespace) -> int:
    if args.path == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.path).read_text(encoding="utf-8")
    if not text.strip():
        print("Transcript is empty.")
        return 1

    session = InterviewSession(create_analysis_client())
    async with session:
        result = await session.analyze_text(text)
        if result is None:
            print(f"Analysis failed: {session.error.detail}")
            return 1
        print(write_result(result, args.out))
    return 0


def _list_devices(args: argparse.Namespace) -> int:
    try:
        devices = list_input_devices()
    except DeviceUnavailableError as exc:
        print(exc.detail)
        return 1
    if args.match:
        devices = [d for d in devices if args.match.lower() in d.get("name", "").lower()]
    for device in devices:
        name = device.get("name", "Unknown")
        index = device.get("index", "?")
        channels = device.get("max_input_channels", 0)
        print(f"[{index}] {name} (inputs: {channels})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "record":
        return asyncio.run(_record(args))

    if args.command == "analyze-text":
        return asyncio.run(_analyze_text(args))

    if args.command == "devices":
        return _list_devices(args)

    if args.command == "guide":
        print(render_guide())
        return 0

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "microphenom.api.app:app",
            host=args.host or settings.app_host,
            port=args.port or settings.app_port,
            log_level=settings.log_level.lower(),
        )
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
