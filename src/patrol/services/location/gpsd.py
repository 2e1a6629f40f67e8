"""Position source backed by a gpsd daemon (JSON protocol over TCP)."""

from __future__ import annotations

import errno
import json
import logging
import socket
import threading
import time
from typing import Any, Optional, TextIO

from ...config import settings
from ...models.domain import ReferencePoint
from .base import LocationError, LocationFailure, LocationProvider, heading_from_compass, resolve_heading

logger = logging.getLogger(__name__)

WATCH_COMMAND = b'?WATCH={"enable":true,"json":true};\n'
# TPV "mode": 0/1 = no fix, 2 = 2D, 3 = 3D
MIN_FIX_MODE = 2


def parse_tpv(report: dict[str, Any], compass: Optional[float] = None) -> Optional[ReferencePoint]:
    """Turn a TPV report into a fix; None when the receiver has no position yet."""
    if report.get("class") != "TPV":
        return None
    mode = report.get("mode") or 0
    lat = report.get("lat")
    lon = report.get("lon")
    if mode < MIN_FIX_MODE or lat is None or lon is None:
        return None
    horizontal_error = [report[key] for key in ("epx", "epy") if report.get(key) is not None]
    return ReferencePoint(
        lat=float(lat),
        lng=float(lon),
        heading=resolve_heading(report.get("track"), compass),
        accuracy_m=max(horizontal_error) if horizontal_error else None,
    )


def parse_att_heading(report: dict[str, Any]) -> Optional[float]:
    """Compass heading from an ATT (attitude) report, if it carries one."""
    if report.get("class") != "ATT":
        return None
    return heading_from_compass(report.get("heading"))


def _decode(line: str) -> Optional[dict[str, Any]]:
    try:
        report = json.loads(line)
    except json.JSONDecodeError:
        logger.debug(f"Ignoring malformed gpsd line: {line[:80]!r}")
        return None
    return report if isinstance(report, dict) else None


class _Session:
    def __init__(self, sock: socket.socket, stream: TextIO) -> None:
        self.sock = sock
        self.stream = stream
        self.stop = threading.Event()
        self.thread: Optional[threading.Thread] = None

    def close(self) -> None:
        self.stop.set()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.stream.close()
        self.sock.close()


class GpsdLocationProvider(LocationProvider):
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        oneshot_timeout: float | None = None,
        tracking_timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.host = host or settings.gpsd_host
        self.port = port or settings.gpsd_port
        self.oneshot_timeout = oneshot_timeout if oneshot_timeout is not None else settings.location_oneshot_timeout_seconds
        self.tracking_timeout = (
            tracking_timeout if tracking_timeout is not None else settings.location_tracking_timeout_seconds
        )

    def _connect(self, timeout: float) -> _Session:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=timeout)
        except ConnectionRefusedError as exc:
            raise LocationError(LocationFailure.UNSUPPORTED, f"gpsd is not running on {self.host}:{self.port}") from exc
        except PermissionError as exc:
            raise LocationError(LocationFailure.PERMISSION_DENIED, str(exc)) from exc
        except TimeoutError as exc:
            raise LocationError(LocationFailure.TIMEOUT, f"connecting to gpsd at {self.host}:{self.port}") from exc
        except OSError as exc:
            if exc.errno in (errno.EACCES, errno.EPERM):
                raise LocationError(LocationFailure.PERMISSION_DENIED, str(exc)) from exc
            raise LocationError(LocationFailure.POSITION_UNAVAILABLE, str(exc)) from exc
        try:
            sock.sendall(WATCH_COMMAND)
        except OSError as exc:
            sock.close()
            raise LocationError(LocationFailure.POSITION_UNAVAILABLE, str(exc)) from exc
        return _Session(sock, sock.makefile("r", encoding="utf-8", newline="\n"))

    def request_once(self, timeout: float | None = None) -> ReferencePoint:
        budget = timeout if timeout is not None else self.oneshot_timeout
        deadline = time.monotonic() + budget
        session = self._connect(budget)
        compass: Optional[float] = None
        saw_report = False
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                session.sock.settimeout(remaining)
                try:
                    line = session.stream.readline()
                except TimeoutError:
                    break
                if not line:
                    raise LocationError(LocationFailure.POSITION_UNAVAILABLE, "gpsd closed the connection")
                report = _decode(line)
                if report is None:
                    continue
                att_heading = parse_att_heading(report)
                if att_heading is not None:
                    compass = att_heading
                if report.get("class") == "TPV":
                    saw_report = True
                fix = parse_tpv(report, compass)
                if fix is not None:
                    return fix
        finally:
            session.close()
        if saw_report:
            raise LocationError(LocationFailure.POSITION_UNAVAILABLE, "receiver has no fix")
        raise LocationError(LocationFailure.TIMEOUT, f"no position within {budget:.0f}s")

    def _subscribe(self, token: int) -> _Session:
        session = self._connect(self.tracking_timeout)
        session.sock.settimeout(self.tracking_timeout)
        thread = threading.Thread(target=self._run, args=(token, session), name="gpsd-location", daemon=True)
        session.thread = thread
        thread.start()
        return session

    def _release(self, handle: _Session | None) -> None:
        if handle is None:
            return
        handle.close()
        if handle.thread is not None and handle.thread is not threading.current_thread():
            handle.thread.join()

    def _run(self, token: int, session: _Session) -> None:
        compass: Optional[float] = None
        last_fix = time.monotonic()
        while not session.stop.is_set():
            try:
                line = session.stream.readline()
            except TimeoutError:
                self._fail(token, LocationError(LocationFailure.TIMEOUT, "gpsd stopped reporting"))
                return
            except (OSError, ValueError):
                if session.stop.is_set():
                    return
                self._fail(token, LocationError(LocationFailure.POSITION_UNAVAILABLE, "lost connection to gpsd"))
                return
            if not line:
                if not session.stop.is_set():
                    self._fail(token, LocationError(LocationFailure.POSITION_UNAVAILABLE, "gpsd closed the connection"))
                return
            report = _decode(line)
            if report is None:
                continue
            att_heading = parse_att_heading(report)
            if att_heading is not None:
                compass = att_heading
                # the compass turns while the receiver stands still
                if not self._emit_heading(token, att_heading):
                    return
            fix = parse_tpv(report, compass)
            if fix is None:
                if time.monotonic() - last_fix > self.tracking_timeout:
                    self._fail(token, LocationError(LocationFailure.POSITION_UNAVAILABLE, "receiver lost its fix"))
                    return
                continue
            last_fix = time.monotonic()
            if not self._emit(token, fix):
                return
