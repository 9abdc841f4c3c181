"""
Gesture Trainer - record, practice and recognize hand gestures

Entry point for the command line tools.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Gesture Trainer - gesture library and replay tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    parser.add_argument(
        "--library",
        type=Path,
        default=None,
        help="Path to gesture library file (overrides config)",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List saved gestures")
    sub.add_parser("config", help="Print the effective configuration")
    sub.add_parser("clear", help="Delete all saved gestures")

    delete = sub.add_parser("delete", help="Delete a gesture by id")
    delete.add_argument("gesture_id", type=int)

    export = sub.add_parser("export", help="Export the library as a dataset file")
    export.add_argument("path", type=Path)

    imp = sub.add_parser("import", help="Import a dataset file")
    imp.add_argument("path", type=Path)
    imp.add_argument(
        "--replace",
        action="store_true",
        help="Replace the library instead of merging by name",
    )

    recognize = sub.add_parser("recognize", help="Replay recorded frames through recognition")
    recognize.add_argument("frames", type=Path, help="JSON lines file of tracker frames")
    recognize.add_argument("--tolerance", type=float, default=None)

    practice = sub.add_parser("practice", help="Replay recorded frames through a practice session")
    practice.add_argument("gesture_id", type=int)
    practice.add_argument("frames", type=Path, help="JSON lines file of tracker frames")
    practice.add_argument("--threshold", type=float, default=None)

    return parser.parse_args(argv)


class ReplayClock:
    """Clock driven by the timestamps of replayed frames."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def read_frames(path, fps=30.0):
    """
    Yield (seconds, TrackerFrame) pairs from a JSON lines file.

    Each line is {"hands": [[{x, y, z}, ...]], "handedness": ["Right"], "t": 0.5};
    "t" is optional and defaults to the line number divided by fps.
    """
    from gestures.landmarks import frame_from_hands

    with open(path, 'r') as f:
        index = 0
        for line in f:
            line = line.strip()
            if not line:
                continue
            data = json.loads(line)
            t = float(data.get("t", index / fps))
            index += 1
            yield t, frame_from_hands(data.get("hands", []), data.get("handedness"))


def cmd_list(app):
    if not app.library:
        print("No saved gestures.")
        return 0
    print(f"{len(app.library)} gestures, {app.library.total_frames} frames")
    print("-" * 40)
    for gesture in app.library:
        created = gesture.created_at.strftime("%Y-%m-%d %H:%M")
        print(f"  [{gesture.id}] {gesture.name}: {gesture.frame_count} frames ({created})")
        report = gesture.consistency_report
        if report is not None and not report.is_consistent:
            print(f"      warnings: {', '.join(report.issues)}")
    return 0


def cmd_recognize(app, frames_path):
    from gestures.context import Mode

    app.switch_mode(Mode.RECOGNITION)
    app.recognition.start()
    for i, (_, frame) in enumerate(read_frames(frames_path)):
        result = app.on_frame(frame)
        if result is not None:
            print(f"[{i:5d}] {result.name} ({result.confidence:.0f}%)")
    app.recognition.stop()
    return 0


def cmd_practice(app, clock, gesture_id, frames_path):
    from gestures.context import Mode

    app.switch_mode(Mode.PRACTICE)
    gesture = app.practice.start(gesture_id)
    print(f"Practicing '{gesture.name}' ({gesture.frame_count} frames)")
    for t, frame in read_frames(frames_path):
        clock.now = t
        update = app.on_frame(frame)
        if update is None:
            continue
        print(
            f"  frame {update.target_frame_index + 1}/{update.frame_count}: "
            f"{update.similarity:.0f}%{' -> advanced' if update.advanced else ''}"
        )
        if update.completed:
            print(f"Completed '{update.gesture_name}' ({update.frame_count} frames)")
            return 0
    print("Practice not completed")
    return 1


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from gestures import GestureApp, GestureError, ImportPolicy, load_config
    from gestures.config import validate_config
    from gestures.storage import JsonFileStore

    try:
        config = load_config(args.config)
    except GestureError as e:
        print(f"ERROR: {e}")
        return 2

    # Apply CLI overrides
    if args.library:
        config.storage.path = str(args.library)
    if getattr(args, "tolerance", None) is not None:
        config.recognition.tolerance = args.tolerance
    if getattr(args, "threshold", None) is not None:
        config.practice.similarity_threshold = args.threshold

    try:
        validate_config(config)
    except GestureError as e:
        print(f"ERROR: {e}")
        return 2

    if args.command == "config":
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    try:
        clock = ReplayClock()
        app = GestureApp(config, JsonFileStore(Path(config.storage.path)), clock=clock)

        if args.command == "list":
            return cmd_list(app)
        if args.command == "delete":
            gesture = app.delete_gesture(args.gesture_id)
            print(f"Deleted '{gesture.name}'")
        elif args.command == "clear":
            app.clear_all_gestures()
            print("All gestures deleted")
        elif args.command == "export":
            app.export_dataset(args.path)
            print(f"Exported {len(app.library)} gestures to {args.path}")
        elif args.command == "import":
            policy = ImportPolicy.REPLACE if args.replace else ImportPolicy.MERGE
            count = app.import_dataset(args.path, policy)
            print(f"Imported {count} gestures ({policy.value}), library holds {len(app.library)}")
        elif args.command == "recognize":
            return cmd_recognize(app, args.frames)
        elif args.command == "practice":
            return cmd_practice(app, clock, args.gesture_id, args.frames)
    except GestureError as e:
        print(f"ERROR: {e}")
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: could not read input: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
