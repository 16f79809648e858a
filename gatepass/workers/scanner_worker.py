# =======================================================================================
# gatepass/workers/scanner_worker.py - Background Scanner Worker
# =======================================================================================
import logging
import threading
from typing import Optional
import serial
from ..config import config
from ..models.schemas import Verdict
from ..services.checkpoint_session import CheckpointSession
from ..utils.exceptions import CameraError, DecodeError, SessionStateError

logger = logging.getLogger(__name__)


class ScannerWorker:
    """Reads pass payloads from a serial QR/barcode reader, one per line."""

    def __init__(
        self,
        session: CheckpointSession,
        port: Optional[str] = None,
        baud: Optional[int] = None,
        timeout: Optional[int] = None,
        retry_delay: Optional[float] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.session = session
        self.port = port or config.SCANNER_PORT
        self.baud = baud or config.SCANNER_BAUD
        self.timeout = timeout if timeout is not None else config.SCANNER_TIMEOUT
        self.retry_delay = retry_delay if retry_delay is not None else config.SCANNER_RETRY_DELAY
        # The reader keeps emitting a pass held in front of it; a decided
        # payload is not presented again until this window has passed
        self.debounce_seconds = (
            config.SCAN_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Start the worker in a background thread."""
        if not self.port:
            logger.info("[scanner] SCANNER_PORT not configured; skipping scanner worker.")
            return False

        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()
        logger.info("[scanner] Worker started for terminal %s", self.session.terminal_id)
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop and wait for the thread to finish its current line."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout if timeout is not None else self.timeout + self.retry_delay)
            if thread.is_alive():
                logger.warning("[scanner] Worker did not stop within the timeout")
        logger.info("[scanner] Worker stopped.")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self._handle_serial_connection()
            except CameraError as e:
                logger.warning("[scanner] %s - retrying in %ss", e, self.retry_delay)
                self._stop.wait(self.retry_delay)

    def _open_port(self) -> serial.Serial:
        try:
            return serial.Serial(self.port, self.baud, timeout=self.timeout)
        except (serial.SerialException, OSError) as e:
            raise CameraError(f"Scanner unavailable on {self.port}: {e}") from e

    def _handle_serial_connection(self) -> None:
        logger.debug("[scanner] Opening %s @ %s", self.port, self.baud)
        with self._open_port() as ser:
            logger.info("[scanner] Port open.")
            while not self._stop.is_set():
                try:
                    line = ser.readline()
                except serial.SerialException as e:
                    raise CameraError(f"Scanner read failed: {e}") from e
                if line:
                    self.handle_line(line)

    # ------------------------------------------------------------------
    # Line handler
    # ------------------------------------------------------------------
    def handle_line(self, line: bytes) -> Optional[Verdict]:
        """Feed one scanned line to the session. Never touches the log."""
        text = line.decode("utf-8", errors="ignore").strip()
        if not text:
            return None
        if self.session.recently_decided(text, self.debounce_seconds):
            logger.debug("[scanner] Ignoring repeat read of a decided pass")
            return None
        try:
            return self.session.present_scan(text)
        except DecodeError as e:
            logger.warning("[scanner] %s", e)
        except SessionStateError as e:
            logger.info("[scanner] Scan ignored: %s", e)
        return None


def start_scanner_worker(
    session: CheckpointSession, debounce_seconds: Optional[float] = None
) -> ScannerWorker:
    """Called from FastAPI startup."""
    worker = ScannerWorker(session, debounce_seconds=debounce_seconds)
    worker.start()
    return worker
