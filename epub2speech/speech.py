"""
Text-to-speech providers.

The set of providers is closed: ``SpeechClient`` is the union of the variants
below. Each variant declares its capabilities and renders text to an audio
file with ``speak_to_file``.
"""

import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional, Union

import requests

from .exceptions import (
    MissingCredential,
    SpeechConnectionFailure,
    SpeechNoContent,
    SpeechRequestFailed,
    SpeechUnauthorized,
    SpeechWriteFailure,
)

logger = logging.getLogger(__name__)

OPENAI_SPEECH_URL = "https://api.openai.com/v1/audio/speech"
DEFAULT_MAX_CHARS = 4096


class SpeechSpeed(Enum):
    VERY_VERY_SLOW = "very-very-slow"
    VERY_SLOW = "very-slow"
    SLOW = "slow"
    NORMAL = "normal"
    QUICK = "quick"
    VERY_QUICK = "very-quick"
    VERY_VERY_QUICK = "very-very-quick"


class SpeechCapability(Enum):
    LANGUAGE_CHOICE = "language-choice"
    VOICE_CHOICE = "voice-choice"
    SPEECH_SPEED_CHOICE = "speech-speed-choice"
    REQUIRES_AUTH = "requires-auth"


def _default_multipliers() -> dict[SpeechSpeed, float]:
    return {
        SpeechSpeed.VERY_VERY_SLOW: 0.25,
        SpeechSpeed.VERY_SLOW: 0.5,
        SpeechSpeed.SLOW: 0.75,
        SpeechSpeed.NORMAL: 1.0,
        SpeechSpeed.QUICK: 1.25,
        SpeechSpeed.VERY_QUICK: 1.5,
        SpeechSpeed.VERY_VERY_QUICK: 2.0,
    }


@dataclass(frozen=True)
class SpeedTable:
    """Mapping from speed tier to playback multiplier."""

    multipliers: dict[SpeechSpeed, float] = field(default_factory=_default_multipliers)

    def multiplier(self, speed: SpeechSpeed) -> float:
        return self.multipliers[speed]


@dataclass
class OpenAISpeech:
    """OpenAI speech endpoint, called over HTTPS."""

    capabilities: ClassVar[frozenset[SpeechCapability]] = frozenset(
        {
            SpeechCapability.VOICE_CHOICE,
            SpeechCapability.SPEECH_SPEED_CHOICE,
            SpeechCapability.REQUIRES_AUTH,
        }
    )

    api_key: str
    voice: str = "alloy"
    speed: float = 1.0
    model: str = "tts-1"
    timeout: int = 120

    def speak_to_file(self, text: str, path: Union[str, Path]) -> None:
        """
        Render text to an audio file.

        Raises:
            SpeechUnauthorized: If the API key is rejected
            SpeechConnectionFailure: If the service cannot be reached
            SpeechNoContent: If the response carries no audio
            SpeechWriteFailure: If the audio cannot be written
            SpeechRequestFailed: For any other error status
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "input": text,
            "voice": self.voice,
            "speed": self.speed,
        }
        logger.debug(f"Requesting speech for {len(text)} chars (voice={self.voice})")

        try:
            response = requests.post(
                OPENAI_SPEECH_URL, headers=headers, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise SpeechConnectionFailure(str(e)) from e

        if response.status_code == 401:
            raise SpeechUnauthorized(response.text)
        if not response.ok:
            raise SpeechRequestFailed(f"HTTP {response.status_code}: {response.text}")
        if not response.content:
            raise SpeechNoContent("Speech service returned an empty body")

        try:
            Path(path).write_bytes(response.content)
        except OSError as e:
            raise SpeechWriteFailure(str(e)) from e
        logger.info(f"Wrote {len(response.content):,} bytes to {path}")


@dataclass
class CommandSpeech:
    """
    Local speech engine driven through an external command.

    The command is invoked as ``command --input <txt> --output <audio>``,
    followed by ``--language <code>`` when a language is set and then any
    extra arguments.
    """

    capabilities: ClassVar[frozenset[SpeechCapability]] = frozenset(
        {SpeechCapability.LANGUAGE_CHOICE}
    )

    command: str
    language: Optional[str] = None
    extra_args: list[str] = field(default_factory=list)

    def speak_to_file(self, text: str, path: Union[str, Path]) -> None:
        """
        Render text to an audio file with the configured command.

        Raises:
            SpeechRequestFailed: If the command fails or writes no audio
        """
        output = Path(path)
        with tempfile.TemporaryDirectory() as tmpdir:
            input_file = Path(tmpdir) / "input.txt"
            input_file.write_text(text, encoding="utf-8")

            cmd = [self.command, "--input", str(input_file), "--output", str(output)]
            if self.language:
                cmd.extend(["--language", self.language])
            cmd.extend(self.extra_args)

            logger.debug(f"Running command: {' '.join(cmd)}")
            try:
                subprocess.run(cmd, capture_output=True, text=True, check=True)
            except FileNotFoundError as e:
                raise SpeechRequestFailed(f"Command not found: {self.command}") from e
            except subprocess.CalledProcessError as e:
                raise SpeechRequestFailed(
                    f"Command failed with exit code {e.returncode}: {e.stderr}"
                ) from e

        if not output.exists():
            raise SpeechRequestFailed(f"Command did not produce {output}")


SpeechClient = Union[OpenAISpeech, CommandSpeech]


@dataclass
class SpeechConfig:
    """
    Settings used to build a speech client.

    Credentials are passed in explicitly; nothing is read from the
    environment here.
    """

    provider: str = "openai"
    api_key: Optional[str] = None
    voice: str = "alloy"
    speed: SpeechSpeed = SpeechSpeed.NORMAL
    language: Optional[str] = None
    command: Optional[str] = None
    extra_args: list[str] = field(default_factory=list)
    speed_table: SpeedTable = field(default_factory=SpeedTable)


def build_speech_client(config: SpeechConfig) -> SpeechClient:
    """
    Create the speech client described by a configuration.

    Raises:
        MissingCredential: If the OpenAI provider has no API key
        ValueError: If the provider is unknown or has no command
    """
    if config.provider == "openai":
        if not config.api_key:
            raise MissingCredential("OpenAI speech requires an API key")
        return OpenAISpeech(
            api_key=config.api_key,
            voice=config.voice,
            speed=config.speed_table.multiplier(config.speed),
        )
    if config.provider == "command":
        if not config.command:
            raise ValueError("command provider requires a command")
        return CommandSpeech(
            command=config.command,
            language=config.language,
            extra_args=list(config.extra_args),
        )
    raise ValueError(f"Unknown speech provider: {config.provider}")


def render_to_file(client: SpeechClient, text: str, path: Union[str, Path]) -> None:
    """Render text with any member of the provider set."""
    if not isinstance(client, (OpenAISpeech, CommandSpeech)):
        raise TypeError(f"Unsupported speech client: {type(client).__name__}")
    client.speak_to_file(text, path)


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """
    Group lines into chunks no longer than ``max_chars``.

    Lines are kept whole where possible; a line longer than the limit is cut
    into pieces of exactly ``max_chars``.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    chunks: list[str] = []
    current = ""
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        while len(line) > max_chars:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_chars])
            line = line[max_chars:]
        if current and len(current) + 1 + len(line) > max_chars:
            chunks.append(current)
            current = ""
        current = f"{current}\n{line}" if current else line
    if current:
        chunks.append(current)
    return chunks
