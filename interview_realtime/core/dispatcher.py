"""
Dual-transport dispatcher.

``ask_question`` is the one question/answer operation both transports call:
the REST route awaits it and returns the result as JSON, the WebSocket loop
runs it as a task and passes its outbound channel so intermediate results are
pushed as they happen. Either way the transcript log receives the same events
and the caller receives the same result shape.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Optional

from .aggregator import ChunkAggregator
from .errors import ProviderError
from .interfaces import (
    EventType, ExchangeContext, LLMEngine, OutboundChannel, Stage,
    SynthesisResult, TTSEngine
)
from .messages import error_message, reply_message, speech_payload, transcript_message
from .pipeline import ExchangePipeline
from .transcript_log import TranscriptLog

logger = logging.getLogger(__name__)

PLACEHOLDER_QUESTION = "(none)"

PROMPT_TEMPLATE = (
    "You are helping a candidate practice for a job interview. "
    "Answer the following interview question the way a strong candidate would, "
    "in a clear and structured way.\n\n"
    "Question: {question}"
)

DEFAULT_SYSTEM_PROMPT = (
    "You are a resilient interview guide: confident, structured and calm, "
    "authoritative yet approachable."
)


@dataclass
class AskResult:
    """Result of one question/answer exchange."""

    received_text: str
    reply_text: str
    providers: Dict[str, Optional[str]] = field(default_factory=dict)
    speech: Optional[SynthesisResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "received": self.received_text,
            "reply": self.reply_text,
            "providers": dict(self.providers),
            "tts": speech_payload(self.speech),
        }


class Dispatcher:
    """Transcribe (optional) -> generate -> synthesize (optional)."""

    def __init__(
        self,
        aggregator: ChunkAggregator,
        llm_engine: LLMEngine,
        tts_engine: Optional[TTSEngine],
        log: TranscriptLog,
        pipeline: Optional[ExchangePipeline] = None,
        prompt_template: str = PROMPT_TEMPLATE,
        system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT,
        llm_options: Optional[Dict[str, Any]] = None,
        tts_options: Optional[Dict[str, Any]] = None
    ):
        self.aggregator = aggregator
        self.llm_engine = llm_engine
        self.tts_engine = tts_engine
        self.log = log
        self.pipeline = pipeline or ExchangePipeline()
        self.prompt_template = prompt_template
        self.system_prompt = system_prompt
        self.llm_options = llm_options or {}
        self.tts_options = tts_options or {}

    async def ask_question(
        self,
        session_id: Optional[str] = None,
        text: Optional[str] = None,
        audio: Optional[bytes] = None,
        want_speech: bool = False,
        channel: Optional[OutboundChannel] = None,
        source: str = "rest",
        language: Optional[str] = None,
        mimetype: Optional[str] = None
    ) -> AskResult:
        """
        Run one question/answer exchange.

        Args:
            session_id: Transcript session to record into, or None
            text: Question text
            audio: Spoken question; transcribed first when given
            want_speech: Synthesize the reply
            channel: Outbound channel to push intermediate results to
            source: Originating transport, for logging
            language: Transcription language override
            mimetype: MIME type of ``audio``

        Returns:
            AskResult

        Raises:
            ProviderError: a provider stage failed; later stages were skipped
        """
        context = ExchangeContext(
            session_id=session_id,
            source=source,
            question_text=text,
            has_audio=bool(audio),
            want_speech=want_speech,
        )
        context.metadata.update({
            "audio": audio,
            "channel": channel,
            "language": language,
            "mimetype": mimetype,
        })

        context = await self.pipeline.process(context, self._run_exchange)
        if context.error is not None:
            raise context.error

        return AskResult(
            received_text=context.received_text or PLACEHOLDER_QUESTION,
            reply_text=context.reply_text or "",
            providers=context.providers,
            speech=context.speech,
        )

    async def _run_exchange(self, context: ExchangeContext) -> ExchangeContext:
        session_id = context.session_id
        channel: Optional[OutboundChannel] = context.metadata.get("channel")
        audio: Optional[bytes] = context.metadata.get("audio")

        context.providers = {"stt": None, "llm": self.llm_engine.name, "tts": None}
        question = (context.question_text or "").strip()

        # 1. Spoken question
        if audio:
            stt_name = self.aggregator.stt_engine.name
            transcription = await self._guard(
                context, channel, Stage.STT, stt_name,
                self.aggregator.single_shot(
                    audio,
                    language=context.metadata.get("language"),
                    mimetype=context.metadata.get("mimetype"),
                ),
            )
            context.providers["stt"] = transcription.provider
            question = transcription.text.strip()
            self.log.record(
                session_id,
                EventType.SINGLE_SHOT_TRANSCRIPT,
                text=transcription.text,
                provider=transcription.provider,
            )
            self._send(channel, transcript_message(transcription.text, transcription.provider, final=True))

        # 2. Nothing usable
        if not question:
            question = PLACEHOLDER_QUESTION
        context.received_text = question

        # 3. Reply
        self.log.record(session_id, EventType.QUESTION_SUBMITTED, text=question, source=context.source)
        generation = await self._guard(
            context, channel, Stage.LLM, self.llm_engine.name,
            self.llm_engine.generate(
                self.prompt_template.format(question=question),
                model=self.llm_options.get("model"),
                temperature=self.llm_options.get("temperature"),
                system=self.system_prompt,
            ),
        )
        context.reply_text = generation.text
        context.providers["llm"] = generation.provider
        self.log.record(
            session_id,
            EventType.REPLY_GENERATED,
            text=generation.text,
            provider=generation.provider,
            model=generation.model,
        )

        # 4. Speech
        if context.want_speech:
            if self.tts_engine is None:
                error = ProviderError("No speech synthesis provider configured", Stage.TTS)
                self._report(context, channel, error)
                raise error

            speech = await self._guard(
                context, channel, Stage.TTS, self.tts_engine.name,
                self.tts_engine.synthesize(
                    generation.text,
                    voice=self.tts_options.get("voice"),
                    model=self.tts_options.get("model"),
                    format=self.tts_options.get("format"),
                ),
            )
            context.speech = speech
            context.providers["tts"] = speech.provider
            self.log.record(
                session_id,
                EventType.SPEECH_SYNTHESIZED,
                provider=speech.provider,
                mime=speech.mime_type,
                bytes=speech.size_bytes,
            )

        self._send(channel, reply_message(generation.text, generation.provider, context.speech))
        return context

    async def _guard(
        self,
        context: ExchangeContext,
        channel: Optional[OutboundChannel],
        stage: Stage,
        provider: str,
        call: Awaitable[Any]
    ) -> Any:
        """Await one provider call, reporting a failure before re-raising it."""
        started = time.perf_counter()
        try:
            return await call
        except ProviderError as e:
            self._report(context, channel, e)
            raise
        except Exception as e:
            logger.error(f"Unexpected {stage.value} failure from {provider}: {e}", exc_info=True)
            error = ProviderError(str(e), stage, provider=provider)
            self._report(context, channel, error)
            raise error from e
        finally:
            context.metadata.setdefault("timing_stages", {})[stage.value] = time.perf_counter() - started

    def _report(self, context: ExchangeContext, channel: Optional[OutboundChannel], error: ProviderError) -> None:
        logger.warning(f"Exchange failed at {error.stage.value} ({context.source}): {error.message}")
        self.log.record(
            context.session_id,
            EventType.ERROR,
            stage=error.stage.value,
            error=error.message,
            provider=error.provider,
        )
        self._send(channel, error_message(error.stage, error.message))

    @staticmethod
    def _send(channel: Optional[OutboundChannel], message: Dict[str, Any]) -> None:
        if channel is not None and channel.is_connected:
            channel.send(message)
