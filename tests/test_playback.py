try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio

import pytest

from app.clients import AudioPayload
from app.services import BufferedAudioSink, PlaybackState, SpeechPlayer


class RecordingSink:
    def __init__(self) -> None:
        self.started: list[bytes] = []
        self.stops = 0
        self.on_finished = None

    def start(self, wav, on_finished) -> None:
        self.started.append(wav)
        self.on_finished = on_finished

    def stop(self) -> None:
        self.stops += 1


def _audio(marker: bytes) -> AudioPayload:
    return AudioPayload(pcm=marker * 2)


def _gated_loader(gate: asyncio.Event, audio: AudioPayload | None):
    async def _load():
        await gate.wait()
        return audio

    return _load


def _immediate(audio: AudioPayload | None):
    async def _load():
        return audio

    return _load


@pytest.mark.asyncio
async def test_play_moves_through_loading_to_playing() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)
    gate = asyncio.Event()

    task = asyncio.create_task(player.play("mayor", _gated_loader(gate, _audio(b"a"))))
    await asyncio.sleep(0)
    assert player.state is PlaybackState.LOADING
    assert player.key == "mayor"

    gate.set()
    assert await task is True
    assert player.state is PlaybackState.PLAYING
    assert sink.started == [_audio(b"a").to_wav()]


@pytest.mark.asyncio
async def test_new_playback_supersedes_one_still_loading() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)
    gate_a = asyncio.Event()
    gate_b = asyncio.Event()

    task_a = asyncio.create_task(player.play("a", _gated_loader(gate_a, _audio(b"a"))))
    await asyncio.sleep(0)
    task_b = asyncio.create_task(player.play("b", _gated_loader(gate_b, _audio(b"b"))))
    await asyncio.sleep(0)

    gate_b.set()
    assert await task_b is True
    gate_a.set()
    assert await task_a is False

    assert player.state is PlaybackState.PLAYING
    assert player.key == "b"
    assert sink.started == [_audio(b"b").to_wav()]


@pytest.mark.asyncio
async def test_new_playback_stops_one_already_playing() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)

    await player.play("a", _immediate(_audio(b"a")))
    await player.play("b", _immediate(_audio(b"b")))

    assert sink.stops == 1
    assert player.key == "b"
    assert sink.started == [_audio(b"a").to_wav(), _audio(b"b").to_wav()]


@pytest.mark.asyncio
async def test_failed_synthesis_returns_to_idle() -> None:
    player = SpeechPlayer(RecordingSink())

    async def _boom():
        raise RuntimeError("tts quota exceeded")

    assert await player.play("a", _immediate(None)) is False
    assert player.state is PlaybackState.IDLE
    assert await player.play("a", _boom) is False
    assert player.state is PlaybackState.IDLE
    assert player.key is None


@pytest.mark.asyncio
async def test_toggle_same_key_stops() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)

    assert await player.toggle("a", _immediate(_audio(b"a"))) is True
    assert await player.toggle("a", _immediate(_audio(b"a"))) is False

    assert player.state is PlaybackState.IDLE
    assert sink.stops == 1


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_orphans_loading() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)
    gate = asyncio.Event()

    task = asyncio.create_task(player.play("a", _gated_loader(gate, _audio(b"a"))))
    await asyncio.sleep(0)
    player.stop()
    player.stop()
    gate.set()

    assert await task is False
    assert player.state is PlaybackState.IDLE
    assert sink.started == []
    assert sink.stops == 0


@pytest.mark.asyncio
async def test_finished_callback_only_affects_its_own_clip() -> None:
    sink = RecordingSink()
    player = SpeechPlayer(sink)

    await player.play("a", _immediate(_audio(b"a")))
    finished_a = sink.on_finished
    await player.play("b", _immediate(_audio(b"b")))

    finished_a()
    assert player.state is PlaybackState.PLAYING
    assert player.key == "b"

    sink.on_finished()
    assert player.state is PlaybackState.IDLE


@pytest.mark.asyncio
async def test_buffered_sink_exposes_active_clip() -> None:
    sink = BufferedAudioSink()
    player = SpeechPlayer(sink)

    await player.play("summary", _immediate(_audio(b"s")))
    assert sink.audio == _audio(b"s").to_wav()

    sink.finish()
    assert sink.audio is None
    assert player.state is PlaybackState.IDLE
    assert player.status().state == "IDLE"
