"""
Factory for creating text recognizers.

Picks the OCR backend from configuration.
"""

from core.constants import DEFAULT_OCR_PARAMS
from core.exceptions import UnsupportedEngine
from services.recognizers import BaseTextRecognizer, TesseractRecognizer, VisionTextRecognizer


class RecognizerFactory:
    """
    Factory class for creating text recognizers.
    """

    @staticmethod
    def create(engine: str, **kwargs) -> BaseTextRecognizer:
        """
        Create a recognizer for an engine name.

        Args:
            engine: 'tesseract' or 'vllm' ('openai' is accepted as an alias)
            **kwargs: Engine-specific configuration
                For Tesseract:
                    - tesseract_cmd, tesseract_config
                For vLLM:
                    - client, api_key, server_url, model, max_tokens, temperature

        Returns:
            Configured recognizer instance

        Raises:
            UnsupportedEngine: If the engine is not supported
        """
        engine = (engine or '').lower().strip()

        if engine == 'tesseract':
            return TesseractRecognizer(
                tesseract_cmd=kwargs.get('tesseract_cmd'),
                tesseract_config=kwargs.get('tesseract_config', DEFAULT_OCR_PARAMS['tesseract_config'])
            )
        elif engine in ('vllm', 'openai'):
            return VisionTextRecognizer(
                client=kwargs.get('client'),
                api_key=kwargs.get('api_key'),
                server_url=kwargs.get('server_url'),
                model=kwargs.get('model', DEFAULT_OCR_PARAMS['model']),
                max_tokens=kwargs.get('max_tokens', DEFAULT_OCR_PARAMS['max_tokens']),
                temperature=kwargs.get('temperature', DEFAULT_OCR_PARAMS['temperature'])
            )
        else:
            raise UnsupportedEngine(
                f"Unsupported OCR engine: '{engine}'. "
                f"Supported engines: {', '.join(RecognizerFactory.get_supported_engines())}"
            )

    @staticmethod
    def get_supported_engines():
        """
        Get list of supported engines.

        Returns:
            List of engine names
        """
        return ['tesseract', 'vllm']


def get_text_recognizer(app_settings=None, client=None) -> BaseTextRecognizer:
    """
    Build the recognizer selected by settings.

    Args:
        app_settings: Settings instance (global settings if None)
        client: Optional AsyncOpenAI client for the vLLM backend

    Returns:
        Recognizer instance
    """
    if app_settings is None:
        from config.settings import settings as app_settings

    config = app_settings.get_recognizer_config()
    if client is not None:
        config['client'] = client
    return RecognizerFactory.create(app_settings.ocr_engine, **config)
