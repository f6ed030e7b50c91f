"""
handorbit - hand gesture control for a 3D region model

Entry point for the application.
"""
import argparse
import logging
import sys
import time
from pathlib import Path


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="handorbit - rotate, select and explode a 3D model with your hands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--mode",
        choices=["debug", "headless", "threaded"],
        default="debug",
        help="debug: camera window with overlay; headless: console only; "
             "threaded: Qt worker thread (default: debug)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    parser.add_argument(
        "--model-path",
        type=Path,
        default=None,
        help="Path to hand_landmarker.task",
    )

    parser.add_argument(
        "--camera",
        type=int,
        default=None,
        help="Camera device id (overrides config)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def describe(model) -> str:
    return (f"rotY={model.rotation_y:+.2f} rotX={model.rotation_x:+.2f} "
            f"explode={int(round(model.explosion * 100))}% "
            f"selected={model.selected}")


def run_loop(config, model_path, show_window: bool):
    """
    Run tracker -> recognizer -> controller on the main thread.
    With show_window, draws the camera feed with landmarks and gesture info.
    """
    from src.tracking.hand_tracker import HandTracker
    from src.tracking import GestureRecognizer, Gesture
    from src.controls import GestureController, RegionModel

    tracker = HandTracker(config, model_path)
    recognizer = GestureRecognizer(config.recognizer)
    model = RegionModel(config=config.model)
    controller = GestureController(model, config.controller)

    controller.on_gesture_change = lambda g: print(f"Gesture: {g}")
    controller.on_region_select = lambda r: print(f"Region: {r}")
    controller.on_hands_detected = lambda n: print(f"Hands: {n}")

    print("Starting hand tracking...")
    if show_window:
        print("Press 'q' to quit")
    print("-" * 40)

    if not tracker.start():
        print("ERROR: Could not start hand tracking")
        return 1

    if show_window:
        import cv2

    last = time.perf_counter()
    interval = config.mediapipe.detect_interval
    try:
        while True:
            frame = tracker.get_frame()
            if frame is not None:
                sample = recognizer.update(frame)
                controller.update(sample)

            now = time.perf_counter()
            model.update(now - last)
            last = now

            if show_window:
                image = tracker.get_frame_with_landmarks(frame)
                if image is not None and frame is not None:
                    cv2.putText(
                        image, f"Gesture: {sample.gesture.value}", (10, 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 1, (0, 255, 0), 2
                    )
                    info_lines = [
                        f"Confidence: {sample.confidence:.2f}",
                        f"Twist: {sample.twist_pose_score:.2f}"
                        f"{' (active)' if sample.twist_pose_active else ''}",
                        f"Angle delta: {sample.hand_angle_delta:+.3f}",
                        describe(model),
                    ]
                    for i, line in enumerate(info_lines):
                        cv2.putText(
                            image, line, (10, 60 + i * 25),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1
                        )
                    cv2.imshow("handorbit", image)

                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
            else:
                if frame is not None and sample.gesture == Gesture.TWIST_POSE:
                    print(describe(model))
                time.sleep(max(0.0, interval - (time.perf_counter() - now)))

    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        tracker.stop()
        if show_window:
            cv2.destroyAllWindows()

    return 0


def run_threaded(config, model_path):
    """Run the frame loop in a QThread, printing worker signals."""
    import signal
    from PyQt5.QtCore import QCoreApplication, QThread, Qt
    from src.tracking.hand_tracker import HandTracker
    from src.tracking.worker import GestureWorker
    from src.controls import RegionModel

    app = QCoreApplication(sys.argv)

    model = RegionModel(config=config.model)
    thread = QThread()
    worker = GestureWorker(config, model, tracker=HandTracker(config, model_path))
    worker.moveToThread(thread)

    def shutdown(*_):
        print("\nShutting down...")
        worker.stop_process()
        thread.quit()
        thread.wait(2000)
        app.quit()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    thread.started.connect(worker.start_process)
    worker.gesture_changed.connect(lambda g: print(f"Gesture: {g}"), Qt.QueuedConnection)
    worker.region_selected.connect(lambda r: print(f"Region: {r}"), Qt.QueuedConnection)
    worker.expansion_changed.connect(lambda p: print(f"Expansion: {p}%"), Qt.QueuedConnection)
    worker.hands_changed.connect(lambda n: print(f"Hands: {n}"), Qt.QueuedConnection)
    worker.error.connect(lambda msg: print(f"WORKER ERROR: {msg}"), Qt.QueuedConnection)

    thread.start()
    return app.exec_()


def main():
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from src.tracking import load_config
    config = load_config(args.config)

    if args.camera is not None:
        config.camera.device_id = args.camera

    print("handorbit starting...")
    print(f"  Mode: {args.mode}")
    print(f"  Camera: {config.camera.device_id}")
    print(f"  Max hands: {config.mediapipe.max_num_hands}")
    print()

    if args.mode == "threaded":
        return run_threaded(config, args.model_path)
    return run_loop(config, args.model_path, show_window=args.mode == "debug")


if __name__ == "__main__":
    sys.exit(main())
