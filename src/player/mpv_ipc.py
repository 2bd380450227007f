# player/mpv_ipc.py
from __future__ import annotations

import json
import logging
import os
import queue
import shutil
import socket
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _is_windows() -> bool:
    return os.name == "nt"


def default_ipc_endpoint(name: str = "lyricsync-video") -> str:
    """mpv wants \\\\.\\pipe\\<name> on Windows and a socket path elsewhere."""
    if _is_windows():
        return rf"\\.\pipe\{name}"
    return f"/tmp/{name}-{os.getpid()}.sock"


def find_mpv_binary(preferred_path: Optional[str] = None) -> Optional[str]:
    if preferred_path:
        return preferred_path if os.path.isfile(preferred_path) else None
    return shutil.which("mpv")


class MpvJsonIpc:
    """
    JSON-lines transport to a running mpv.

    A reader thread parses incoming lines into a queue; the owner drains it with recv_nowait()
    on its own thread, so callbacks never run on the reader thread.
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self._stop = threading.Event()
        self._rx_queue: "queue.Queue[dict[str, Any]]" = queue.Queue()
        self._tx_lock = threading.Lock()
        self._sock: Optional[socket.socket] = None
        self._pipe = None

    @property
    def connected(self) -> bool:
        return not self._stop.is_set() and (self._sock is not None or self._pipe is not None)

    def connect(self, timeout_s: float = 3.0) -> None:
        deadline = time.monotonic() + timeout_s
        last_err: Optional[Exception] = None

        # mpv creates the endpoint shortly after launch
        while time.monotonic() < deadline:
            try:
                if _is_windows():
                    self._pipe = open(self.endpoint, "r+b", buffering=0)
                else:
                    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                    s.connect(self.endpoint)
                    self._sock = s
                break
            except OSError as e:
                last_err = e
                time.sleep(0.05)
        else:
            raise OSError(f"Could not connect to mpv at {self.endpoint}: {last_err!r}")

        threading.Thread(target=self._rx_loop, name="mpv-ipc-rx", daemon=True).start()

    def close(self) -> None:
        self._stop.set()
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._sock.close()
            self._sock = None
        if self._pipe is not None:
            try:
                self._pipe.close()
            except OSError:
                pass
            self._pipe = None

    def send(self, payload: dict[str, Any]) -> None:
        line = (json.dumps(payload) + "\n").encode("utf-8")
        with self._tx_lock:
            if self._sock is not None:
                self._sock.sendall(line)
            elif self._pipe is not None:
                self._pipe.write(line)
                self._pipe.flush()
            else:
                raise ConnectionError("mpv IPC not connected")

    def recv_nowait(self) -> Optional[dict[str, Any]]:
        try:
            return self._rx_queue.get_nowait()
        except queue.Empty:
            return None

    def _read_chunk(self) -> bytes:
        if self._sock is not None:
            return self._sock.recv(4096)
        if self._pipe is not None:
            return self._pipe.read(4096)
        return b""

    def _rx_loop(self) -> None:
        buf = b""
        try:
            while not self._stop.is_set():
                try:
                    chunk = self._read_chunk()
                except OSError:
                    break
                if not chunk:
                    break
                buf += chunk
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    if not line.strip():
                        continue
                    try:
                        msg = json.loads(line.decode("utf-8", errors="replace"))
                    except ValueError:
                        logger.debug("Ignoring malformed mpv line: %r", line[:200])
                        continue
                    if isinstance(msg, dict):
                        self._rx_queue.put(msg)
        finally:
            self._stop.set()


@dataclass(frozen=True)
class MpvVideoConfig:
    mpv_path: Optional[str] = None
    ipc_endpoint: Optional[str] = None
    window_title: str = "lyricsync video"
    # embed into a native window (QWidget.winId()); None opens mpv's own window
    wid: Optional[int] = None


class MpvVideoBackend:
    """
    A muted mpv instance that streams a video URL (ytdl) and is controlled over JSON IPC.

    Pump process_messages() regularly (e.g. from a QTimer) to update the cached properties
    and deliver events.
    """

    OBSERVED = ("time-pos", "pause", "idle-active", "duration")

    def __init__(self, config: Optional[MpvVideoConfig] = None, transport: Optional[MpvJsonIpc] = None):
        self.config = config or MpvVideoConfig()
        self.endpoint = self.config.ipc_endpoint or default_ipc_endpoint()
        self._transport = transport or MpvJsonIpc(self.endpoint)
        self._proc: Optional[subprocess.Popen] = None
        self._req_id = 0

        self.props: dict[str, Any] = {"time-pos": None, "pause": True, "idle-active": True, "duration": None}
        self._event_handlers: dict[str, list[Callable[[dict[str, Any]], None]]] = {}

    # ---- lifecycle ----

    def start(self) -> None:
        if self._proc is not None:
            return

        mpv_bin = find_mpv_binary(self.config.mpv_path)
        if not mpv_bin:
            raise FileNotFoundError("mpv binary not found (set LYRICSYNC_MPV_PATH or put mpv on PATH)")

        if not _is_windows() and os.path.exists(self.endpoint):
            os.remove(self.endpoint)

        args = [
            mpv_bin,
            "--idle=yes",
            "--mute=yes",
            "--keep-open=yes",
            "--force-window=yes",
            "--pause=yes",
            "--terminal=no",
            "--msg-level=all=warn",
            f"--title={self.config.window_title}",
            f"--input-ipc-server={self.endpoint}",
        ]
        if self.config.wid is not None:
            args.append(f"--wid={int(self.config.wid)}")

        creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) if _is_windows() else 0
        logger.info("Starting mpv: %s", mpv_bin)
        self._proc = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=creationflags,
        )
        try:
            self._transport.connect()
            for name in self.OBSERVED:
                self.command("observe_property", self._next_id(), name)
        except OSError:
            logger.warning("mpv IPC setup failed; killing mpv")
            self._transport.close()
            self._proc.kill()
            self._proc.wait()
            self._proc = None
            raise

    def stop(self) -> None:
        if self._transport.connected:
            try:
                self.command("quit")
            except OSError as e:
                logger.debug("mpv quit failed: %s", e)
        self._transport.close()
        if self._proc is not None:
            try:
                self._proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                self._proc.kill()
            self._proc = None

    def is_running(self) -> bool:
        if self._proc is None:
            return self._transport.connected
        return self._proc.poll() is None and self._transport.connected

    # ---- protocol ----

    def _next_id(self) -> int:
        self._req_id += 1
        return self._req_id

    def command(self, *args: Any) -> None:
        self._transport.send({"command": list(args)})

    def on_event(self, name: str, handler: Callable[[dict[str, Any]], None]) -> None:
        self._event_handlers.setdefault(name, []).append(handler)

    def process_messages(self, max_messages: int = 200) -> int:
        handled = 0
        for _ in range(max_messages):
            msg = self._transport.recv_nowait()
            if msg is None:
                break
            handled += 1

            event = msg.get("event")
            if event == "property-change":
                name = msg.get("name")
                if name in self.props:
                    self.props[name] = msg.get("data")
                continue
            if isinstance(event, str):
                for handler in list(self._event_handlers.get(event, [])):
                    handler(msg)
            elif msg.get("error") not in (None, "success"):
                logger.debug("mpv reply: %s", msg)
        return handled

    # ---- controls ----

    def load_url(self, url: str) -> None:
        self.command("loadfile", url, "replace")

    def set_paused(self, paused: bool) -> None:
        self.command("set_property", "pause", bool(paused))

    def seek_seconds(self, sec: float) -> None:
        self.command("seek", max(0.0, float(sec)), "absolute")

    # ---- cached state ----

    def position_seconds(self) -> float:
        v = self.props.get("time-pos")
        return float(v) if isinstance(v, (int, float)) else 0.0

    def is_paused(self) -> bool:
        return bool(self.props.get("pause"))

    def is_idle(self) -> bool:
        return bool(self.props.get("idle-active"))
