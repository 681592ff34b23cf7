"""
Offline export CLI: steps a saved project at a fixed frame rate and writes one
JSON line per frame with the transform of every visible object.

Stdout: JSON lines (unless --out is given).
Stderr: log output, and the error message on failure (exit code 1).

Usage::

    motioncore-export --project /path/to/project.json --fps 30 --out frames.jsonl
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import IO, List, Optional

from .core.config import get_settings
from .motion_engine import AnimationEngine, KeyframeStore, StepReport, export_frames, timeline_duration_ms
from .schemas.project import ProjectState
from .services.capture_loader import FileCaptureSource

logger = logging.getLogger("motioncore.cli")


def frame_record(engine: AnimationEngine, frame_index: int, report: StepReport) -> dict:
    """JSON-serializable snapshot of the visible objects after a step."""
    objects = []
    for runtime in engine.visible_runtimes():
        transform = runtime.transform
        record = {
            "id": runtime.object_id,
            "kind": runtime.object_kind,
            "position": list(transform.position),
            "rotation": transform.rotation,
            "scale": list(transform.scale),
            "opacity": transform.opacity,
            "layer": transform.layer,
        }
        if runtime.video is not None:
            record["frames_drawn"] = runtime.video.pacer.num_frames_drawn
            record["uv_rect"] = list(runtime.video.uv_rect.as_tuple())
        objects.append(record)
    return {
        "frame": frame_index,
        "time_ms": report.t_ms,
        "sequence_id": report.sequence_id,
        "objects": objects,
    }


def run_export(
    project: ProjectState,
    fps: int,
    out: IO[str],
    capture_dir: Optional[Path] = None,
) -> int:
    """
    Export a project as JSON lines.

    Without timeline entries the first sequence plays on its own.

    Returns:
        Number of frames written

    Raises:
        ValueError: If the project has no sequences
    """
    if not project.sequences:
        raise ValueError(f"Project {project.id} has no sequences")

    store = KeyframeStore()
    for sequence in project.sequences:
        store.load_sequence(sequence)

    timeline = project.timeline_state if project.timeline_state.timeline_sequences else None
    engine = AnimationEngine(store, timeline=timeline, capture=FileCaptureSource(capture_dir))

    if timeline is None:
        first = project.sequences[0]
        engine.set_current_sequence(first.id)
        total_ms = first.duration_ms
    else:
        total_ms = timeline_duration_ms(timeline)

    def write_frame(frame_index: int, report: StepReport) -> None:
        out.write(json.dumps(frame_record(engine, frame_index, report)) + "\n")

    return export_frames(engine, total_ms, fps, on_frame=write_frame)


def main(argv: Optional[List[str]] = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Export per-frame object transforms of a saved project as JSON lines."
    )
    parser.add_argument(
        "--project",
        type=Path,
        required=True,
        metavar="PATH",
        help="Path to the project JSON (ProjectState)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=settings.export_fps,
        help=f"Export frame rate (default: {settings.export_fps})",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write JSON lines here instead of stdout",
    )
    parser.add_argument(
        "--capture-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory holding one capture folder per video object id",
    )
    args = parser.parse_args(argv)

    # Stdout carries the frame stream
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        project = ProjectState.model_validate_json(args.project.read_text(encoding="utf-8"))
        if args.out is not None:
            args.out.parent.mkdir(parents=True, exist_ok=True)
            with args.out.open("w", encoding="utf-8") as out:
                frames = run_export(project, args.fps, out, args.capture_dir)
        else:
            frames = run_export(project, args.fps, sys.stdout, args.capture_dir)
        logger.info(f"Wrote {frames} frames")

    except Exception as exc:  # noqa: BLE001
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
