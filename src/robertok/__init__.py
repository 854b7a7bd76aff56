"""robertok: RoBERTa-compatible byte-level BPE tokenization."""

from .bpe import BytePairEncoder, bpe_encode
from .errors import PatternError, ResourceLoadError, RobertokError
from .factory import ResourcesFactory, from_pretrained
from .pattern import TokenPattern
from .resources import TokenizerResources, bytes_to_unicode
from .tokenizer import (
    CLS_TOKEN,
    PAD_TOKEN,
    SEP_TOKEN,
    UNK_TOKEN,
    RobertaTokenizer,
    SpecialTokens,
    Tokenizer,
)

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("robertok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Tokenizer",
    "RobertaTokenizer",
    "SpecialTokens",
    "TokenizerResources",
    "ResourcesFactory",
    "BytePairEncoder",
    "TokenPattern",
    "RobertokError",
    "ResourceLoadError",
    "PatternError",
    "CLS_TOKEN",
    "PAD_TOKEN",
    "SEP_TOKEN",
    "UNK_TOKEN",
    "bpe_encode",
    "bytes_to_unicode",
    "from_pretrained",
]
