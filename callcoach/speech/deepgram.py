"""
Deepgram live dictation provider.

Microphone audio is captured with sounddevice, downmixed to mono PCM16 and
streamed over a websocket to Deepgram's live endpoint. Deepgram closes idle
sockets on its own; that surfaces as `on_end` so the capture engine can
re-open the session.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Union

import aiohttp
import numpy as np
import sounddevice as sd

from callcoach.config import Config
from callcoach.errors import PermissionDenied
from callcoach.speech.base import SpeechProvider

logger = logging.getLogger(__name__)

DEEPGRAM_URL_BASE = (
    "wss://api.deepgram.com/v1/listen"
    "?punctuate=true"
    "&smart_format=true"
    "&encoding=linear16"
    "&channels=1"
    "&interim_results=true"
    "&utterance_end_ms=1000"
    "&endpointing=200"
    "&vad_events=true"
)

BLOCK_MS = 20


def build_deepgram_url(sample_rate: int, model: str, language: str) -> str:
    sr = int(sample_rate) if sample_rate else 16000
    return f"{DEEPGRAM_URL_BASE}&sample_rate={sr}&model={model}&language={language}"


def to_mono_int16(indata: np.ndarray) -> bytes:
    """
    Convert sounddevice callback 'indata' into mono PCM16 little-endian bytes.
    Uses the first channel only.
    """
    x = np.asarray(indata)
    if x.ndim == 2 and x.shape[1] >= 1:
        mono = x[:, 0]
    else:
        mono = x.reshape(-1)

    if mono.dtype == np.int16:
        return mono.astype(np.int16).tobytes(order="C")

    f = np.clip(mono.astype(np.float32), -1.0, 1.0)
    return (f * 32767.0).astype(np.int16).tobytes(order="C")


def parse_message(raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """
    Map one Deepgram websocket message to a provider event:
      {"event": "result", "text": str, "is_final": bool}
      {"event": "status", "tag": str}
      {"event": "error", "kind": str}
    Returns None for messages with nothing to report.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    msg_type = str(data.get("type") or "")
    if msg_type == "SpeechStarted":
        return {"event": "status", "tag": "sound-detected"}
    if msg_type == "UtteranceEnd":
        return {"event": "status", "tag": "speech-ended"}
    if msg_type.lower() == "error" or "error" in data:
        return {"event": "error", "kind": "network"}

    transcript = ""
    chan = data.get("channel")
    if isinstance(chan, dict):
        alts = chan.get("alternatives")
        if isinstance(alts, list) and alts and isinstance(alts[0], dict):
            transcript = (alts[0].get("transcript") or "").strip()
    if not transcript:
        return None

    return {"event": "result", "text": transcript, "is_final": bool(data.get("is_final"))}


class DeepgramSpeechProvider(SpeechProvider):
    """Deepgram streaming transcription of the local microphone."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        device: Optional[Union[int, str]] = None,
        sample_rate: Optional[int] = None,
        model: Optional[str] = None,
        language: Optional[str] = None,
    ):
        super().__init__()
        self.api_key = api_key if api_key is not None else Config.DEEPGRAM_API_KEY
        if device is None and Config.MIC_DEVICE:
            device = int(Config.MIC_DEVICE) if Config.MIC_DEVICE.isdigit() else Config.MIC_DEVICE
        self.device = device
        self.sample_rate = int(sample_rate or Config.MIC_SAMPLE_RATE)
        self.model = model or Config.DEEPGRAM_MODEL
        self.language = language or Config.SPEECH_LANGUAGE
        self._task: Optional[asyncio.Task] = None

    def is_supported(self) -> bool:
        return bool(self.api_key)

    async def request_permission(self) -> None:
        def _check():
            sd.check_input_settings(
                device=self.device,
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
            )

        try:
            await asyncio.get_running_loop().run_in_executor(None, _check)
        except (sd.PortAudioError, ValueError) as e:
            raise PermissionDenied(f"Could not access microphone: {e}") from e

    def open(self) -> None:
        if self._task is not None:
            raise RuntimeError("Deepgram session already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    def close(self) -> None:
        task = self._task
        if task is None:
            return
        self._task = None
        task.cancel()
        self._emit_end()

    async def _run(self) -> None:
        me = asyncio.current_task()
        loop = asyncio.get_running_loop()
        q: "asyncio.Queue[bytes]" = asyncio.Queue(maxsize=500)

        def audio_cb(indata, frames, time_info, status):
            if status:
                logger.debug("[DEEPGRAM] sd_status: %s", status)
            pcm16 = to_mono_int16(indata)
            loop.call_soon_threadsafe(self._enqueue, q, pcm16)

        url = build_deepgram_url(self.sample_rate, self.model, self.language)
        headers = {"Authorization": f"Token {self.api_key}"}

        try:
            with sd.InputStream(
                device=self.device,
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                blocksize=int(self.sample_rate * BLOCK_MS / 1000),
                callback=audio_cb,
            ):
                timeout = aiohttp.ClientTimeout(total=None)
                async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
                    async with session.ws_connect(url, heartbeat=20) as ws:
                        self._emit_status("capture-opened")
                        await self._pump(ws, q)
        except asyncio.CancelledError:
            raise
        except sd.PortAudioError as e:
            logger.error("[DEEPGRAM] Audio capture failed: %s", e)
            self._emit_error("audio-capture")
        except aiohttp.ClientError as e:
            logger.error("[DEEPGRAM] Websocket error: %s", e)
            self._emit_error("network")
        finally:
            # close() already reported the end of a cancelled session
            if self._task is me:
                self._task = None
                self._emit_end()

    @staticmethod
    def _enqueue(q: "asyncio.Queue[bytes]", pcm16: bytes) -> None:
        # drop oldest if behind to keep audio current
        if q.full():
            q.get_nowait()
        q.put_nowait(pcm16)

    async def _pump(self, ws: aiohttp.ClientWebSocketResponse, q: "asyncio.Queue[bytes]") -> None:
        async def sender():
            while True:
                chunk = await q.get()
                await ws.send_bytes(chunk)

        async def receiver():
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.ERROR:
                    raise aiohttp.ClientError(f"WebSocket error: {ws.exception()}")
                if msg.type != aiohttp.WSMsgType.TEXT:
                    continue
                event = parse_message(msg.data)
                if event is None:
                    continue
                if event["event"] == "result":
                    self._emit_result(event["text"], event["is_final"])
                elif event["event"] == "status":
                    self._emit_status(event["tag"])
                else:
                    self._emit_error(event["kind"])
            logger.info("[DEEPGRAM] Connection closed by server (code=%s)", ws.close_code)

        tasks = [
            asyncio.create_task(sender()),
            asyncio.create_task(receiver()),
        ]
        try:
            done, pending = await asyncio.wait(set(tasks), return_when=asyncio.FIRST_COMPLETED)
        finally:
            for t in tasks:
                t.cancel()
        for t in done:
            exc = t.exception()
            if exc:
                raise exc
