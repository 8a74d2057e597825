# src/codebundle/utils/tokenizer.py
import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


def estimate_tokens(text: str) -> int:
    """Rough count used when no encoding is available (about 4 chars per token)."""
    return len(text) // 4


class Tokenizer:
    """
    Counts how many tokens a bundle costs the reading model.

    The tiktoken encoding is loaded on first use. Loading may need to fetch
    the BPE file; if that fails once, every later call uses estimate_tokens
    without retrying.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING):
        self.encoding_name = encoding_name
        self._encoding = None
        self._unavailable = False

    @property
    def exact(self) -> bool:
        return self._load() is not None

    def _load(self):
        if self._encoding is None and not self._unavailable:
            try:
                self._encoding = tiktoken.get_encoding(self.encoding_name)
            except Exception as e:
                logger.warning("Token encoding %s unavailable (%s); using length estimate", self.encoding_name, e)
                self._unavailable = True
        return self._encoding

    def count(self, text: str) -> int:
        encoding = self._load()
        if encoding is None:
            return estimate_tokens(text)
        # Bundled source may legitimately contain strings like "<|endoftext|>"
        return len(encoding.encode(text, disallowed_special=()))
