"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)

# .env is looked up in the current working directory
_env_file = Path.cwd() / '.env'
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"Loaded .env from {_env_file.absolute()}: {_dotenv_result}")

# Load from environment variables with defaults
LLM_PROVIDER = os.getenv('LLM_PROVIDER', 'ollama')  # 'ollama' or 'openai'
API_ENDPOINT = os.getenv('API_ENDPOINT', 'http://localhost:11434/api/generate')
DEFAULT_MODEL = os.getenv('DEFAULT_MODEL', 'qwen3:14b')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '120'))
OLLAMA_NUM_CTX = int(os.getenv('OLLAMA_NUM_CTX', '4096'))
MAX_TRANSLATION_ATTEMPTS = int(os.getenv('MAX_TRANSLATION_ATTEMPTS', '2'))
MAX_CONCURRENT_REQUESTS = int(os.getenv('MAX_CONCURRENT_REQUESTS', '4'))
RETRY_DELAY = float(os.getenv('RETRY_DELAY', '2'))

# Source language: empty or "auto" means detect from page content
DEFAULT_SOURCE_LANGUAGE = os.getenv('DEFAULT_SOURCE_LANGUAGE', '')
DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'English')
AUTO_DETECT_VALUES = ('', 'auto')

LANGUAGE_DETECTION_SAMPLE_CHARS = int(os.getenv('LANGUAGE_DETECTION_SAMPLE_CHARS', '1000'))
"""Characters of page text sent to the detection prompt"""

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug(f"   LLM_PROVIDER: {LLM_PROVIDER}")
    _config_logger.debug(f"   API_ENDPOINT: {API_ENDPOINT}")
    _config_logger.debug(f"   DEFAULT_MODEL: {DEFAULT_MODEL}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   MAX_CONCURRENT_REQUESTS: {MAX_CONCURRENT_REQUESTS}")
    _config_logger.debug(f"   OPENAI_API_KEY: {'***' + OPENAI_API_KEY[-4:] if OPENAI_API_KEY else '(not set)'}")

# Translation tags
TRANSLATE_TAG_IN = "<TRANSLATION>"
TRANSLATE_TAG_OUT = "</TRANSLATION>"
INPUT_TAG_IN = "<SOURCE_TEXT>"
INPUT_TAG_OUT = "</SOURCE_TEXT>"
LANGUAGE_TAG_IN = "<LANGUAGE>"
LANGUAGE_TAG_OUT = "</LANGUAGE>"

# ============================================================================
# PROTECTED FRAGMENT PLACEHOLDERS
# ============================================================================
# Protected inline fragments (inline code etc.) are swapped for tokens such as
# [id3.0] before translation: unit 3, first fragment. Tokens use only ASCII
# letters, digits, brackets and a dot so no HTML serializer escapes them and
# translators leave them as a single word.

PLACEHOLDER_PREFIX = "[id"
PLACEHOLDER_SEPARATOR = "."
PLACEHOLDER_SUFFIX = "]"

PLACEHOLDER_PATTERN = r'\[id(\d+)\.(\d+)\]'
"""Regex pattern for placeholders (e.g., [id3.0])"""


def create_placeholder(unit_id: int, index: int, prefix: str = None, suffix: str = None) -> str:
    """
    Create a placeholder token for a protected fragment.

    Args:
        unit_id: Id of the content unit owning the fragment
        index: Per-unit sequence number of the fragment
        prefix: Optional custom prefix (defaults to PLACEHOLDER_PREFIX)
        suffix: Optional custom suffix (defaults to PLACEHOLDER_SUFFIX)

    Returns:
        Placeholder string like [id3.0]
    """
    if prefix is None:
        prefix = PLACEHOLDER_PREFIX
    if suffix is None:
        suffix = PLACEHOLDER_SUFFIX
    return f"{prefix}{unit_id}{PLACEHOLDER_SEPARATOR}{index}{suffix}"


# ============================================================================
# UNIT CLASSIFICATION
# ============================================================================
# Local tag names (namespace stripped) so XHTML documents classify the same way

CONTENT_BLOCK_TAGS = frozenset([
    'p', 'div', 'li', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote',
    'td', 'th', 'caption', 'dt', 'dd', 'figcaption', 'summary', 'label',
])

EXCLUDED_TAGS = frozenset([
    'script', 'style', 'noscript', 'code', 'pre', 'textarea', 'input',
    'svg', 'math', 'template',
])

OPT_OUT_CLASSES = frozenset(['notranslate'])
"""Class names that opt an element and its subtree out of translation"""

PROTECTED_INLINE_TAGS = frozenset(['code', 'kbd', 'samp'])

CODE_BLOCK_TAGS = frozenset(['pre'])
"""Ancestors that make an inline code element part of a code block"""

SYNTAX_HIGHLIGHT_MARKERS = ('language-', 'lang-', 'hljs', 'highlight', 'sourcecode', 'prettyprint')
"""Class-name prefixes that mark a code element as a highlighted code block"""

UNSAFE_FRAGMENT_TAGS = frozenset(['script', 'style', 'iframe', 'object', 'embed'])
"""A fragment containing any of these is never treated as protected"""


@dataclass
class TranslationConfig:
    """Settings for one page translation run"""

    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE
    model: str = DEFAULT_MODEL
    api_endpoint: str = API_ENDPOINT
    llm_provider: str = LLM_PROVIDER
    openai_api_key: str = OPENAI_API_KEY

    timeout: int = REQUEST_TIMEOUT
    max_attempts: int = MAX_TRANSLATION_ATTEMPTS
    max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS
    context_window: int = OLLAMA_NUM_CTX
    stream: bool = True

    enable_colors: bool = True

    @classmethod
    def from_cli_args(cls, args) -> 'TranslationConfig':
        """Create config from CLI arguments"""
        return cls(
            source_language=args.source_lang,
            target_language=args.target_lang,
            model=args.model,
            api_endpoint=args.api_endpoint,
            llm_provider=getattr(args, 'provider', LLM_PROVIDER),
            openai_api_key=getattr(args, 'openai_api_key', OPENAI_API_KEY),
            max_concurrent_requests=getattr(args, 'concurrency', MAX_CONCURRENT_REQUESTS),
            stream=not getattr(args, 'no_stream', False),
            enable_colors=not getattr(args, 'no_color', False),
        )

    @property
    def auto_detect_source(self) -> bool:
        return (self.source_language or '').strip().lower() in AUTO_DETECT_VALUES

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'source_language': self.source_language,
            'target_language': self.target_language,
            'model': self.model,
            'api_endpoint': self.api_endpoint,
            'llm_provider': self.llm_provider,
            'timeout': self.timeout,
            'max_attempts': self.max_attempts,
            'max_concurrent_requests': self.max_concurrent_requests,
            'context_window': self.context_window,
            'stream': self.stream,
        }
