"""
RoBERTa byte-level BPE tokenizer.

Implemented according to:
- https://huggingface.co/docs/transformers/model_doc/roberta#transformers.RobertaTokenizer
- https://github.com/openai/gpt-2/blob/master/src/encoder.py
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from math import ceil
from typing import TYPE_CHECKING, Final, override

from .bpe import BytePairEncoder
from .pattern import TokenPattern, compile_pattern
from .resources import TokenizerResources
from .types import Symbol, TokenId

if TYPE_CHECKING:
    import regex as re

    from .factory import ResourcesFactory


# Hugging Face defaults
CLS_TOKEN: Final[TokenId] = 0  # also BOS
PAD_TOKEN: Final[TokenId] = 1
SEP_TOKEN: Final[TokenId] = 2  # also EOS
UNK_TOKEN: Final[TokenId] = 3

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecialTokens:
    """
    Sentinel ids wrapped around or substituted into every token sequence.

    ``pad`` is never emitted by the tokenizer; it is carried here for callers
    that pad sequences to a fixed model length.
    """

    cls: TokenId = CLS_TOKEN
    sep: TokenId = SEP_TOKEN
    unk: TokenId = UNK_TOKEN
    pad: TokenId = PAD_TOKEN

    def __post_init__(self) -> None:
        for field in fields(self):
            tok = getattr(self, field.name)
            if isinstance(tok, bool) or not isinstance(tok, int) or tok < 0:
                raise ValueError(
                    f"{field.name} token must be a non-negative int, got {tok!r}"
                )


class Tokenizer(ABC):
    """Abstract interface for tokenizers that turn sentences into token ids."""

    @abstractmethod
    def tokenize(self, sentence: str) -> list[TokenId]:
        """Convert a sentence into a sequence of token ids."""
        ...

    @property
    @abstractmethod
    def cls_token(self) -> TokenId:
        """Classification (begin of sequence) token."""
        ...

    @property
    @abstractmethod
    def sep_token(self) -> TokenId:
        """Separator (end of sequence) token."""
        ...

    @property
    @abstractmethod
    def unk_token(self) -> TokenId:
        """Token substituted for symbols missing from the vocabulary."""
        ...


class RobertaTokenizer(Tokenizer):
    """
    Tokenizer used by RoBERTa-family models.

    Splits text with a regex pre-tokenizer, remaps each chunk's UTF-8 bytes to
    base symbols, merges them with byte-level BPE and looks the resulting
    symbols up in the vocabulary. Every sequence is wrapped in the ``cls`` and
    ``sep`` sentinels.

    :param resources: Ready tables, or a factory whose ``create()`` builds them
                      on first use.
    :param special_tokens: Sentinel ids; defaults to ``cls=0, sep=2, unk=3``.
    :param pattern: Custom pre-tokenization regex; defaults to the RoBERTa pattern.
    :raises TypeError: If ``resources`` is missing or of the wrong type.
    :raises PatternError: If ``pattern`` is not a valid regex.
    """

    def __init__(
        self,
        resources: "TokenizerResources | ResourcesFactory",
        *,
        special_tokens: SpecialTokens | None = None,
        pattern: str | None = None,
    ) -> None:
        if resources is None:
            raise TypeError("resources must not be None")

        self._factory: "ResourcesFactory | None" = None
        self._resources: TokenizerResources | None = None
        if isinstance(resources, TokenizerResources):
            self._resources = resources
        elif callable(getattr(resources, "create", None)):
            self._factory = resources
        else:
            raise TypeError(
                "resources must be TokenizerResources or a factory with create(), "
                f"got {type(resources).__name__}"
            )
        # guards the one-time build of lazily created resources
        self._lock = threading.Lock()

        self._special_tokens = (
            special_tokens if special_tokens is not None else SpecialTokens()
        )
        self.pat: str = pattern if pattern is not None else TokenPattern.ROBERTA.value
        self.compiled_pat: "re.Pattern[str]" = compile_pattern(self.pat)
        self._encoder = BytePairEncoder()

    @property
    def special_tokens(self) -> SpecialTokens:
        return self._special_tokens

    @property
    @override
    def cls_token(self) -> TokenId:
        return self._special_tokens.cls

    @property
    @override
    def sep_token(self) -> TokenId:
        return self._special_tokens.sep

    @property
    @override
    def unk_token(self) -> TokenId:
        return self._special_tokens.unk

    @property
    def pad_token(self) -> TokenId:
        return self._special_tokens.pad

    @property
    def resources(self) -> TokenizerResources:
        """Lookup tables, built on first access when a factory was given."""
        return self._get_resources()

    def _get_resources(self) -> TokenizerResources:
        resources = self._resources
        if resources is None:
            with self._lock:
                if self._resources is None:
                    log.debug("building tokenizer resources on first use")
                    self._resources = self._factory.create()
                resources = self._resources
        return resources

    def pre_tokenize(self, sentence: str) -> list[str]:
        """
        Split a sentence into the chunks BPE is applied to.

        With the default pattern the chunks cover the whole sentence: words and
        number runs keep one leading space, and whitespace runs are split so
        the last space attaches to the following word.
        """
        _check_sentence(sentence)
        return [m.group(0) for m in self.compiled_pat.finditer(sentence)]

    def _to_base_symbols(self, chunk: str, resources: TokenizerResources) -> str:
        """Remap each UTF-8 byte of ``chunk`` to its base symbol."""
        # unpaired surrogates cannot be encoded; they become "?" like any other
        # unencodable character
        raw = chunk.encode("utf-8", errors="replace")
        return "".join(resources.encode_byte(b) for b in raw)

    @override
    def tokenize(self, sentence: str) -> list[TokenId]:
        """
        Encode a sentence into RoBERTa token ids.

        :param sentence: Any text, including the empty string.
        :return: ``[cls, *ids, sep]``; symbols missing from the vocabulary map
                 to the ``unk`` id.
        :raises TypeError: If ``sentence`` is not a string.
        """
        chunks = self.pre_tokenize(sentence)
        resources = self._get_resources()
        unk = self._special_tokens.unk

        tokens: list[TokenId] = [self._special_tokens.cls]
        for chunk in chunks:
            symbols: list[Symbol] = self._encoder.encode(
                self._to_base_symbols(chunk, resources), resources
            )
            tokens.extend(resources.encode_word(sym, unk) for sym in symbols)
        tokens.append(self._special_tokens.sep)

        return tokens

    def tokenize_batch(
        self,
        sentences: list[str],
        num_workers: int | None = None,
    ) -> list[list[TokenId]]:
        """
        Tokenize many sentences, optionally across worker threads.

        Each sentence is tokenized as a whole by one worker; results keep the
        input order.

        :param sentences: Sentences to tokenize.
        :param num_workers: Thread count; defaults to the CPU count, ``0`` means 1.
        :returns: One token sequence per sentence.
        """
        if not sentences:
            return []

        if num_workers is None:
            workers = os.cpu_count() or 1
        else:
            workers = max(1, num_workers)  # "0" interpreted as 1 worker

        # build lazy resources once before fanning out
        self._get_resources()

        if workers == 1 or len(sentences) <= 1:
            return [self.tokenize(sentence) for sentence in sentences]

        # group sentences to reduce task-scheduling overhead
        target_tasks = min(len(sentences), workers * 2)
        group_size = max(1, ceil(len(sentences) / target_tasks))
        groups = [
            sentences[idx : idx + group_size]
            for idx in range(0, len(sentences), group_size)
        ]

        def tokenize_group(group: list[str]) -> list[list[TokenId]]:
            return [self.tokenize(sentence) for sentence in group]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            tokenized_groups = list(pool.map(tokenize_group, groups))
        return [tokens for group in tokenized_groups for tokens in group]


def _check_sentence(sentence: str) -> None:
    if not isinstance(sentence, str):
        raise TypeError(f"sentence must be a str, got {type(sentence).__name__}")
