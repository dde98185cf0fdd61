"""Terminal spinner that follows analysis stages."""

import sys
import threading


class StageSpinner:
    """
    Context manager that animates the current analysis stage on stderr.

    Pass ``spinner.on_stage`` as the engine's ``progress_fn``:

        with StageSpinner("Analyzing") as spinner:
            engine = SkillAnalysisEngine(progress_fn=spinner.on_stage)
            outcome = engine.analyze(text)

    Does nothing when stderr is not a terminal.
    """

    FRAMES = [".", "..", "...", "   "]
    INTERVAL = 0.2

    def __init__(self, message: str = "Analyzing", stream=None, enabled: bool = True):
        self.message = message
        self.stream = stream or sys.stderr
        self.stage = ""
        self.enabled = enabled and self.stream.isatty()
        self._stop = threading.Event()
        self._thread = None

    def _label(self) -> str:
        return f"{self.message} {self.stage}".rstrip()

    def _spin(self):
        idx = 0
        width = 0
        while not self._stop.is_set():
            frame = self.FRAMES[idx % len(self.FRAMES)]
            text = f"\r  {self._label()}{frame}   "
            width = max(width, len(text))
            self.stream.write(text)
            self.stream.flush()
            idx += 1
            self._stop.wait(self.INTERVAL)
        # Clear the spinner line
        self.stream.write(f"\r{' ' * width}\r")
        self.stream.flush()

    def __enter__(self):
        if self.enabled:
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()
        return self

    def __exit__(self, *args):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def on_stage(self, stage: str, index: int, total: int) -> None:
        """Engine progress callback."""
        self.stage = f"[{index}/{total} {stage}]"
