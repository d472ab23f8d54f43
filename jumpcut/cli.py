"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from jumpcut.analyzers.silence import analyze_silence
from jumpcut.editors.filtergraph import build_filter_graph
from jumpcut.editors.plan import plan_segments
from jumpcut.engine import process
from jumpcut.errors import JumpCutError
from jumpcut.ffutil import FFmpegAdapter, is_audio_only
from jumpcut.manifest import EngineSettings, Manifest, ProcessingConfig, load_manifest


def _add_processing_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("video", nargs="?", type=Path, help="Input video or audio file")
    p.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    p.add_argument("--output", "-o", type=Path, help="Output file path")
    p.add_argument("--mode", choices=["remove", "speed"], default="remove",
                   help="Remove silent parts or play them faster")
    p.add_argument("--threshold", type=float, default=-30.0, help="Silence threshold in dB")
    p.add_argument("--min-silence", type=float, default=0.5,
                   help="Minimum silence duration (seconds)")
    p.add_argument("--speed", type=float, default=2.0,
                   help="Playback speed for silent parts in speed mode")
    p.add_argument("--ffmpeg", type=str, help="ffmpeg executable (default: $JUMPCUT_FFMPEG or ffmpeg)")
    p.add_argument("--ffprobe", type=str, help="ffprobe executable (default: $JUMPCUT_FFPROBE or ffprobe)")
    p.add_argument("--verbose", "-v", action="store_true", help="Log ffmpeg commands and filter graphs")


def _build_manifest(args: argparse.Namespace) -> Manifest | None:
    if args.manifest:
        return load_manifest(args.manifest)
    if args.video:
        output = args.output or args.video.with_stem(args.video.stem + "_jumpcut")
        return Manifest(
            input=args.video,
            output=output,
            processing=ProcessingConfig(
                silence_threshold_db=args.threshold,
                min_silence_duration=args.min_silence,
                speed_factor=args.speed,
                mode=args.mode,
            ),
        )
    return None


def _build_adapter(args: argparse.Namespace) -> FFmpegAdapter:
    settings = EngineSettings.from_env()
    if args.ffmpeg:
        settings.ffmpeg_path = args.ffmpeg
    if args.ffprobe:
        settings.ffprobe_path = args.ffprobe
    adapter = FFmpegAdapter(settings)
    adapter.check_available()
    return adapter


def _print_plan(m: Manifest, adapter: FFmpegAdapter) -> None:
    cfg = m.processing
    silences = analyze_silence(m.input, cfg, adapter)
    probe = adapter.probe(m.input)
    plan = plan_segments(silences, probe.duration, cfg.mode, cfg.speed_factor)

    print(f"Duration: {probe.duration:.3f}s")
    print(f"Silences ({len(silences)}):")
    for s in silences:
        print(f"  {s.start:10.3f} -> {s.end:10.3f}  ({s.duration:.3f}s)")
    print(f"Segments ({plan.mode.value} mode):")
    for seg in plan.segments:
        speed = "" if seg.speed == 1 else f"  x{seg.speed:g}"
        print(f"  {seg.start:10.3f} -> {seg.end:10.3f}{speed}")
    print(f"Output duration: {plan.output_duration:.3f}s")

    graph = build_filter_graph(
        plan, include_video=probe.has_video and not is_audio_only(m.output)
    )
    if graph is None:
        print("Filter graph: none (input would be copied unchanged)")
    else:
        print("Filter graph:")
        print("  " + ";\n  ".join(graph.filter_complex.split(";")))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jumpcut",
        description="JumpCut — cut or speed up the silent parts of a video.",
    )
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Process a media file")
    _add_processing_args(proc)

    plan = sub.add_parser("plan", help="Show detected silences and the edit without rendering")
    _add_processing_args(plan)

    serve = sub.add_parser("serve", help="Launch the local HTTP API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from jumpcut.web import create_app
        app = create_app()
        print(f"JumpCut API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        m = _build_manifest(args)
        if m is None:
            print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
            sys.exit(1)
        adapter = _build_adapter(args)

        if args.command == "plan":
            _print_plan(m, adapter)
            return

        def on_progress(stage: str, frac: float) -> None:
            print(f"  [{frac:4.0%}] {stage}")

        result = process(m.input, m.output, m.processing, adapter=adapter, on_progress=on_progress)
    except (JumpCutError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! Output: {result.output_path}")
    print(f"  Duration: {result.duration_original:.1f}s -> {result.duration_final:.1f}s")
    if result.passthrough:
        print("  Nothing to cut; input copied unchanged")
    else:
        print(f"  Silent intervals handled: {result.silences_found}")


if __name__ == "__main__":
    main()
