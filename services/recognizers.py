"""
Text recognizers - OCR engines behind a common async interface.

The orchestrator only talks to BaseTextRecognizer; engines raise whatever
they raise and the orchestrator treats failures opaquely.
"""
import asyncio
import math
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import pytesseract
from openai import AsyncOpenAI
from PIL import Image

from core.constants import DEFAULT_OCR_PARAMS, OCR_PROMPTS
from core.exceptions import UnsupportedRecognizerOutput
from core.logger import get_logger
from core.models import RecognitionOutput
from utils.image_utils import image_to_base64

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


class BaseTextRecognizer(ABC):
    """
    Abstract base class for text recognizers.

    Implementations receive an already cropped and upscaled image and return
    the recognized text with a confidence in [0, 100]. Progress, when
    reported, is a non-decreasing value in [0, 1].
    """

    name = "base"

    @abstractmethod
    async def recognize(
        self,
        image: Image.Image,
        language: str = DEFAULT_OCR_PARAMS['language'],
        on_progress: Optional[ProgressCallback] = None
    ) -> RecognitionOutput:
        """
        Recognize the text in an image.

        Args:
            image: Region crop
            language: Engine language code (e.g. 'eng')
            on_progress: Optional callback receiving values in [0, 1]

        Returns:
            RecognitionOutput with text and confidence

        Raises:
            Exception: Engine-specific failures
        """
        pass

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], value: float) -> None:
        if on_progress is not None:
            on_progress(min(max(value, 0.0), 1.0))


def parse_tesseract_data(data: Dict[str, List]) -> RecognitionOutput:
    """
    Build a RecognitionOutput from pytesseract.image_to_data output.

    Words are joined with spaces per line, lines with newlines; the
    confidence is the mean word confidence (0 when no words were found).

    Raises:
        UnsupportedRecognizerOutput: If required keys are missing or malformed
    """
    required = ('text', 'conf', 'block_num', 'par_num', 'line_num')
    if not isinstance(data, dict) or any(key not in data for key in required):
        raise UnsupportedRecognizerOutput("Tesseract output is missing word data")

    lines: Dict[tuple, List[str]] = {}
    confidences: List[float] = []
    try:
        for i, raw_text in enumerate(data['text']):
            text = str(raw_text or '').strip()
            conf = float(data['conf'][i])
            if not text or conf < 0:
                continue
            key = (int(data['block_num'][i]), int(data['par_num'][i]), int(data['line_num'][i]))
            lines.setdefault(key, []).append(text)
            confidences.append(conf)
    except (IndexError, TypeError, ValueError) as e:
        raise UnsupportedRecognizerOutput(f"Malformed Tesseract output: {e}") from e

    text = '\n'.join(' '.join(words) for _, words in sorted(lines.items()))
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return RecognitionOutput(text=text, confidence=confidence)


class TesseractRecognizer(BaseTextRecognizer):
    """Recognizer backed by the Tesseract CLI through pytesseract."""

    name = "tesseract"

    def __init__(
        self,
        tesseract_cmd: Optional[str] = None,
        tesseract_config: str = DEFAULT_OCR_PARAMS['tesseract_config'],
        **kwargs
    ):
        """
        Initialize Tesseract recognizer.

        Args:
            tesseract_cmd: Path to the tesseract binary (defaults to PATH lookup)
            tesseract_config: Extra CLI options, e.g. page segmentation mode
        """
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = tesseract_config

    def _recognize_sync(self, image: Image.Image, language: str) -> RecognitionOutput:
        data = pytesseract.image_to_data(
            image,
            lang=language,
            config=self.config,
            output_type=pytesseract.Output.DICT
        )
        return parse_tesseract_data(data)

    async def recognize(
        self,
        image: Image.Image,
        language: str = DEFAULT_OCR_PARAMS['language'],
        on_progress: Optional[ProgressCallback] = None
    ) -> RecognitionOutput:
        self._report(on_progress, 0.0)
        output = await asyncio.to_thread(self._recognize_sync, image, language)
        self._report(on_progress, 1.0)
        return output


class VisionTextRecognizer(BaseTextRecognizer):
    """Recognizer backed by an OpenAI-compatible vision model (e.g. vLLM)."""

    name = "vllm"

    def __init__(
        self,
        client=None,
        api_key: Optional[str] = None,
        server_url: Optional[str] = None,
        model: str = DEFAULT_OCR_PARAMS['model'],
        max_tokens: int = DEFAULT_OCR_PARAMS['max_tokens'],
        temperature: float = DEFAULT_OCR_PARAMS['temperature'],
        prompt: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize vision recognizer.

        Args:
            client: AsyncOpenAI client instance (created from api_key/server_url if None)
            api_key: API key for the server
            server_url: Base URL of the OpenAI-compatible server
            model: Model name
            max_tokens: Completion token limit
            temperature: Sampling temperature
            prompt: Instruction sent with each crop
        """
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=server_url)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.prompt = prompt or OCR_PROMPTS['region']

    async def _call_model(self, img_b64: str, language: str):
        """Call the chat completions API with image and prompt."""
        return await self.client.chat.completions.create(
            model=self.model,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": f"{self.prompt} Language: {language}."},
                    {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{img_b64}"}}
                ]
            }],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            logprobs=True,
            stream=False
        )

    @staticmethod
    def _parse_response(response) -> RecognitionOutput:
        """Extract text and a logprob-based confidence from a completion."""
        try:
            choice = response.choices[0]
            content = choice.message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise UnsupportedRecognizerOutput(f"Unexpected completion payload: {e}") from e

        if not isinstance(content, str):
            raise UnsupportedRecognizerOutput("Completion has no text content")

        confidence = 0.0
        token_logprobs = getattr(getattr(choice, 'logprobs', None), 'content', None) or []
        values = [t.logprob for t in token_logprobs if getattr(t, 'logprob', None) is not None]
        if values:
            confidence = math.exp(sum(values) / len(values)) * 100

        return RecognitionOutput(text=content, confidence=confidence)

    async def recognize(
        self,
        image: Image.Image,
        language: str = DEFAULT_OCR_PARAMS['language'],
        on_progress: Optional[ProgressCallback] = None
    ) -> RecognitionOutput:
        self._report(on_progress, 0.0)
        response = await self._call_model(image_to_base64(image), language)
        output = self._parse_response(response)
        self._report(on_progress, 1.0)
        return output
