"""Exclusive speech playback for one dashboard surface.

Only one narration is ever loading or playing. Starting another stops the
current one first, and a synthesis request that finishes after being
superseded is dropped.
"""

from __future__ import annotations

import enum
import logging
from typing import Awaitable, Callable, Optional, Protocol

from app.clients.gemini import AudioPayload
from app.schemas.analysis import PlaybackStatus

SpeechLoader = Callable[[], Awaitable[Optional[AudioPayload]]]

logger = logging.getLogger(__name__)


class PlaybackState(str, enum.Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    PLAYING = "PLAYING"


class AudioSink(Protocol):
    """Output device for decoded audio."""

    def start(self, wav: bytes, on_finished: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class BufferedAudioSink:
    """Keeps the active WAV buffer so an HTTP client can fetch and play it."""

    def __init__(self) -> None:
        self._audio: Optional[bytes] = None
        self._on_finished: Optional[Callable[[], None]] = None

    @property
    def audio(self) -> Optional[bytes]:
        return self._audio

    def start(self, wav: bytes, on_finished: Callable[[], None]) -> None:
        self._audio = wav
        self._on_finished = on_finished

    def stop(self) -> None:
        self._audio = None
        self._on_finished = None

    def finish(self) -> None:
        """Signal that the client reached the end of the clip."""
        callback = self._on_finished
        self.stop()
        if callback is not None:
            callback()


class SpeechPlayer:
    """IDLE -> LOADING -> PLAYING -> IDLE, with supersession by token."""

    def __init__(self, sink: AudioSink) -> None:
        self._sink = sink
        self._state = PlaybackState.IDLE
        self._key: Optional[str] = None
        self._token = 0

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def key(self) -> Optional[str]:
        return self._key

    def status(self) -> PlaybackStatus:
        return PlaybackStatus(state=self._state.value, key=self._key)

    async def play(self, key: str, loader: SpeechLoader) -> bool:
        """Stop whatever is active, then load and start ``key``.

        Returns ``True`` when audio started for this request.
        """
        self.stop()
        self._token += 1
        token = self._token
        self._state = PlaybackState.LOADING
        self._key = key

        try:
            audio = await loader()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Speech synthesis failed for %s", key)
            audio = None

        if token != self._token:
            logger.debug("Dropping superseded speech for %s", key)
            return False
        if audio is None:
            self._to_idle()
            return False

        self._sink.start(audio.to_wav(), lambda: self._finished(token))
        self._state = PlaybackState.PLAYING
        return True

    async def toggle(self, key: str, loader: SpeechLoader) -> bool:
        """Stop ``key`` if it is active, otherwise play it."""
        if self._key == key and self._state is not PlaybackState.IDLE:
            self.stop()
            return False
        return await self.play(key, loader)

    def stop(self) -> None:
        """Halt output and orphan any in-flight load. Safe to call repeatedly."""
        if self._state is PlaybackState.PLAYING:
            self._sink.stop()
        self._token += 1
        self._to_idle()

    def _finished(self, token: int) -> None:
        if token == self._token and self._state is PlaybackState.PLAYING:
            self._to_idle()

    def _to_idle(self) -> None:
        self._state = PlaybackState.IDLE
        self._key = None


__all__ = [
    "AudioSink",
    "BufferedAudioSink",
    "PlaybackState",
    "SpeechLoader",
    "SpeechPlayer",
]
