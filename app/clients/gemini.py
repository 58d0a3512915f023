"""Client wrapper for interacting with Google Gemini models."""

from __future__ import annotations

import asyncio
import base64
import io
import json
import logging
import uuid
import wave
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from textwrap import dedent
from typing import Any, Callable, Iterable, Optional

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from app.core.config import GeminiSettings
from app.schemas.analysis import (
    ANALYSIS_RESPONSE_SCHEMA,
    AnalysisPayload,
    Evidence,
    PolicyAnalysis,
    Source,
    Stakeholder,
)

PCM_SAMPLE_RATE = 24000
PCM_CHANNELS = 1
PCM_SAMPLE_WIDTH = 2

logger = logging.getLogger(__name__)


class GeminiModelError(RuntimeError):
    """Raised when Gemini cannot fulfil a request."""


class ConfigurationError(GeminiModelError):
    """Raised when no credential is available for the Gemini capabilities."""


class UpstreamError(GeminiModelError):
    """Raised when Gemini is reachable but returns unusable output."""


@dataclass(frozen=True, slots=True)
class GeneratedImage:
    """Inline image returned by the image model."""

    mime_type: str
    data: bytes

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True, slots=True)
class AudioPayload:
    """Raw 16-bit PCM audio returned by the speech model."""

    pcm: bytes
    sample_rate: int = PCM_SAMPLE_RATE
    channels: int = PCM_CHANNELS

    def to_wav(self) -> bytes:
        """Wrap the PCM samples in a WAV container so players can decode them."""
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(self.channels)
            wav_file.setsampwidth(PCM_SAMPLE_WIDTH)
            wav_file.setframerate(self.sample_rate)
            wav_file.writeframes(self.pcm)
        return buffer.getvalue()

    @property
    def duration_seconds(self) -> float:
        frame_size = PCM_SAMPLE_WIDTH * self.channels
        return len(self.pcm) / frame_size / self.sample_rate


class GeminiClient:
    """Run policy analysis, future-state imagery, and narration through Gemini."""

    def __init__(
        self,
        settings: GeminiSettings,
        client: Optional[genai.Client] = None,
    ) -> None:
        self._settings = settings
        self._client = client

    async def analyze_policy(
        self,
        policy_text: str,
        geography: str = "",
        evidence: Optional[Evidence] = None,
    ) -> PolicyAnalysis:
        """Request a structured analysis and map it onto the domain model."""
        if not policy_text.strip():
            raise ValueError("Policy text must not be empty.")
        if evidence is not None and not (evidence.mime_type and evidence.data):
            raise ValueError("Evidence requires a MIME type and data.")

        client = self._require_client()
        contents = _build_analysis_contents(policy_text, geography, evidence)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=ANALYSIS_RESPONSE_SCHEMA,
            tools=[types.Tool(google_search=types.GoogleSearch())],
            thinking_config=types.ThinkingConfig(
                thinking_budget=self._settings.thinking_budget
            ),
        )

        def _invoke() -> Any:
            return self._invoke_with_models(
                models=self._analysis_model_candidates(),
                env_var="GEMINI_ANALYSIS_MODEL",
                error_prefix="Gemini analysis generate_content failed",
                call=lambda model: client.models.generate_content(
                    model=model, contents=contents, config=config
                ),
            )

        response = await asyncio.to_thread(_invoke)
        payload = _parse_analysis_payload(getattr(response, "text", None))

        return PolicyAnalysis(
            **payload.model_dump(),
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            sources=extract_sources(response),
            input_evidence=evidence,
            raw_input=policy_text,
        )

    async def generate_image(self, prompt: str) -> Optional[GeneratedImage]:
        """Best-effort future-state visual. Any failure yields ``None``."""
        client = self._require_client()
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=self._settings.image_aspect_ratio
            ),
        )

        def _invoke() -> Any:
            return client.models.generate_content(
                model=self._settings.image_model_name,
                contents=prompt,
                config=config,
            )

        try:
            response = await asyncio.to_thread(_invoke)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Image generation failed")
            return None

        for part in _response_parts(response):
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return GeneratedImage(
                    mime_type=inline.mime_type or "image/png",
                    data=_as_bytes(inline.data),
                )
        logger.warning("Image generation returned no inline image data")
        return None

    async def generate_speech(self, text: str) -> Optional[AudioPayload]:
        """Read ``text`` aloud with the neutral narration voice."""
        return await self._synthesize(text, self._settings.narration_voice)

    async def generate_stakeholder_speech(
        self, stakeholder: Stakeholder
    ) -> Optional[AudioPayload]:
        """Voice a stakeholder's concern in character."""
        prompt = dedent(
            f"""\
            Act as a representative of the "{stakeholder.group}".
            Your sentiment towards the policy is {stakeholder.sentiment}.
            Read the following concern naturally: "{stakeholder.concern}"
            """
        )
        return await self._synthesize(prompt, self.voice_for_group(stakeholder.group))

    def voice_for_group(self, group: str) -> str:
        """Pick a stable voice so a group always sounds the same."""
        voices = self._settings.stakeholder_voices
        return voices[zlib.crc32(group.encode("utf-8")) % len(voices)]

    async def _synthesize(self, text: str, voice: str) -> Optional[AudioPayload]:
        client = self._require_client()
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
                )
            ),
        )

        def _invoke() -> Any:
            return client.models.generate_content(
                model=self._settings.speech_model_name,
                contents=text,
                config=config,
            )

        try:
            response = await asyncio.to_thread(_invoke)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Speech generation failed (voice=%s)", voice)
            return None

        parts = _response_parts(response)
        inline = getattr(parts[0], "inline_data", None) if parts else None
        if inline is None or not inline.data:
            logger.warning("Speech generation returned no audio (voice=%s)", voice)
            return None
        return AudioPayload(pcm=_as_bytes(inline.data))

    def _require_client(self) -> genai.Client:
        """Return the SDK client, failing before any network call without a key."""
        if self._client is not None:
            return self._client
        if not self._settings.has_credentials:
            raise ConfigurationError(
                "Gemini API key not found. Set GEMINI_API_KEY before running analyses."
            )
        self._client = genai.Client(api_key=self._settings.api_key)
        return self._client

    def _invoke_with_models(
        self,
        *,
        models: Iterable[str],
        env_var: str,
        error_prefix: str,
        call: Callable[[str], Any],
    ) -> Any:
        """Try the configured model followed by fallbacks when available."""

        model_sequence = list(models)
        last_not_found: errors.ClientError | None = None
        for index, model_name in enumerate(model_sequence):
            try:
                return call(model_name)
            except errors.ClientError as exc:
                if exc.code != 404:
                    raise UpstreamError(f"{error_prefix}: {exc.message}") from exc
                last_not_found = exc
                logger.warning(
                    "Gemini model '%s' not found (attempt %d/%d); trying fallback.",
                    model_name,
                    index + 1,
                    len(model_sequence),
                )
                continue
            except errors.APIError as exc:
                raise UpstreamError(f"{error_prefix}: {exc.message}") from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(f"{error_prefix}: {exc}") from exc

        if last_not_found is not None:
            primary = model_sequence[0] if model_sequence else "unknown"
            raise UpstreamError(
                "Gemini model '"
                f"{primary}"
                "' is not available. Update "
                f"{env_var} to a supported value."
            ) from last_not_found

        raise UpstreamError(f"{error_prefix}: Unknown error invoking Gemini.")

    def _analysis_model_candidates(self) -> list[str]:
        return self._collect_candidates(
            self._settings.analysis_model_name,
            self._settings.analysis_model_fallbacks,
        )

    @staticmethod
    def _collect_candidates(
        configured: str | None,
        fallbacks: tuple[str, ...],
    ) -> list[str]:
        """Return distinct model names prioritizing the configured value."""
        seen: set[str] = set()
        candidates: list[str] = []
        for name in (configured, *fallbacks):
            if not name:
                continue
            cleaned = name.strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            candidates.append(cleaned)
        return candidates


def _build_analysis_prompt(
    policy_text: str, geography: str, evidence: Optional[Evidence]
) -> str:
    """Construct the reasoning prompt for a policy simulation."""
    sections = [
        "You are Civic Architect, a stochastic policy simulation engine.",
        f'Input Policy:\n"{policy_text}"',
    ]
    if geography:
        sections.append(f'Target Geography / Context: "{geography}"')
    if evidence is not None:
        sections.append(
            dedent(
                f"""\
                [EVIDENCE ATTACHED]
                Filename: {evidence.filename}
                MimeType: {evidence.mime_type}
                Context: {evidence.caption or "No caption"}
                INSTRUCTION: Perform a forensic audit on this file.
                - If VIDEO: Analyze behavioral patterns, traffic flow, and environmental cues over time.
                - If IMAGE: Analyze infrastructure condition, neglect signals, and spatial constraints.
                - Integrate these findings into the 'evidenceAnalysis' and the 'diagnosis'."""
            )
        )
    sections.append(
        dedent(
            """\
            Mission:
            Conduct a deep-chain reasoning simulation to architect the future state of this policy.

            Reasoning Framework:
            1. DIAGNOSIS: Separate symptoms from root causes. Use Google Search to find real-world precedents (successes and failures).
            2. RESEARCH: Cite peer-reviewed or institutional research relevant to the policy, with institution, year, and link.
            3. NEWS: Cite recent news coverage describing the public pain points this policy addresses, with outlet, date, and link.
            4. BLUEPRINT: Create a coordinated strategy across Government (policy/infra), Society (NGOs), and Individuals (behavior).
            5. SHADOW TIMELINE: Simulate 2nd and 3rd order effects up to 20 years out. Highlight compounding failures.
            6. VIABILITY: Estimate budget bands and success probability based on complexity.
            7. STAKEHOLDERS: Identify key players, including specific political leaders or institutions if relevant to the geography. Define their required actions, not just their sentiment.

            Output:
            - Strictly formatted JSON matching the schema.
            - Tone: Clinical, visionary, data-driven."""
        )
    )
    return "\n\n".join(sections)


def _build_analysis_contents(
    policy_text: str, geography: str, evidence: Optional[Evidence]
) -> list[types.Part]:
    prompt = _build_analysis_prompt(policy_text, geography, evidence)
    parts = [types.Part.from_text(text=prompt)]
    if evidence is not None:
        parts.insert(
            0,
            types.Part.from_bytes(
                data=base64.b64decode(evidence.data),
                mime_type=evidence.mime_type,
            ),
        )
    return parts


def _parse_analysis_payload(text: Optional[str]) -> AnalysisPayload:
    """Validate the model's JSON against the analysis contract."""
    payload = (text or "").strip()
    if not payload:
        raise UpstreamError("No response from the reasoning model.")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise UpstreamError("Reasoning model returned malformed JSON.") from exc
    if not isinstance(data, dict):
        raise UpstreamError("Reasoning model returned a non-object JSON payload.")
    try:
        return AnalysisPayload.model_validate(data)
    except ValidationError as exc:
        missing = sorted(
            {".".join(str(loc) for loc in error["loc"]) for error in exc.errors()}
        )
        raise UpstreamError(
            "Reasoning model output did not match the analysis schema: "
            + ", ".join(missing)
        ) from exc


def extract_sources(response: Any) -> list[Source]:
    """Map grounding chunks carrying a web reference to sources, in order."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: list[Source] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        sources.append(Source(title=web.title or "", uri=web.uri or ""))
    return sources


def _response_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _as_bytes(data: bytes | str) -> bytes:
    """The SDK returns bytes; tolerate base64 text from older transports."""
    if isinstance(data, str):
        return base64.b64decode(data)
    return data


__all__ = [
    "AudioPayload",
    "ConfigurationError",
    "GeminiClient",
    "GeminiModelError",
    "GeneratedImage",
    "UpstreamError",
    "extract_sources",
]
