"""
Read-only lookup tables backing byte-level BPE tokenization.

A :class:`TokenizerResources` instance bundles the three tables the tokenizer
consults: the byte -> base symbol map, the symbol -> token id vocabulary and
the symbol pair -> merge rank table. Tables are frozen on construction, so a
single instance can be shared between threads without locking.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Final

from ._decorators import log_elapsed
from .errors import ResourceLoadError
from .types import (
    BaseVocabulary,
    Rank,
    RankTable,
    Symbol,
    SymbolPair,
    TokenId,
    Vocabulary,
)

BASE_VOCABULARY_FILE: Final[str] = "base_vocabulary.json"
VOCABULARY_FILE: Final[str] = "vocabulary.json"
MERGES_FILE: Final[str] = "merges.txt"
BASE_VOCAB_SIZE: Final[int] = 256

log = logging.getLogger(__name__)


def bytes_to_unicode() -> dict[int, Symbol]:
    """
    Build the standard GPT-2/RoBERTa byte -> printable unicode mapping.

    Printable latin-1 bytes map to themselves; every other byte is shifted to
    an unused code point starting at U+0100, so the space byte becomes ``Ġ``.
    """
    bs = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    cs = bs[:]
    n = 0
    for b in range(BASE_VOCAB_SIZE):
        if b not in bs:
            bs.append(b)
            cs.append(BASE_VOCAB_SIZE + n)
            n += 1
    return {b: chr(c) for b, c in zip(bs, cs)}


class TokenizerResources:
    """
    Immutable byte map, vocabulary and merge ranks.

    :param base_vocab: Total mapping of byte values 0-255 to base symbols.
    :param vocab: Mapping of symbols to token ids.
    :param ranks: Mapping of symbol pairs to merge ranks (lower merges first).
    :raises ResourceLoadError: If any table violates its contract.
    """

    def __init__(
        self,
        base_vocab: BaseVocabulary,
        vocab: Vocabulary,
        ranks: RankTable,
    ) -> None:
        self._base_vocab: BaseVocabulary = MappingProxyType(
            _check_base_vocab(base_vocab)
        )
        self._vocab: Vocabulary = MappingProxyType(_check_vocab(vocab))
        self._ranks: RankTable = MappingProxyType(_check_ranks(ranks))

    @classmethod
    @log_elapsed("loading tokenizer resources")
    def from_directory(cls, base_dir: str | Path) -> "TokenizerResources":
        """
        Load resources from a directory holding the three resource files.

        :param base_dir: Directory containing ``base_vocabulary.json``,
                         ``vocabulary.json`` and ``merges.txt``.
        :return: Fully constructed resources.
        :raises ResourceLoadError: If the directory or any file is missing or malformed.
        """
        path = Path(base_dir)
        if not path.is_dir():
            raise ResourceLoadError(
                "resource directory does not exist", resource_path=str(path)
            )

        log.info(f"loading tokenizer resources from {path}")

        base_vocab = load_base_vocabulary(path / BASE_VOCABULARY_FILE)
        vocab = load_vocabulary(path / VOCABULARY_FILE)
        ranks = load_merges(path / MERGES_FILE)
        resources = cls(base_vocab, vocab, ranks)

        log.info(
            f"resources loaded successfully: {resources.vocab_size} vocabulary entries, "
            f"{resources.n_merges} merge rules"
        )
        return resources

    def encode_byte(self, byte: int) -> Symbol:
        """
        Map a byte to its base symbol.

        Signed values (-128..127) are reinterpreted as unsigned, so both
        ``-1`` and ``255`` resolve to the same symbol.

        :raises ValueError: If ``byte`` lies outside -128..255.
        """
        if not -128 <= byte <= 255:
            raise ValueError(f"byte value out of range: {byte}")
        return self._base_vocab[byte & 0xFF]

    def encode_word(self, symbol: Symbol, default_id: TokenId) -> TokenId:
        """Return the token id for ``symbol`` or ``default_id`` if it is unknown."""
        return self._vocab.get(symbol, default_id)

    def rank_of(self, pair: SymbolPair, default_rank: Rank | float) -> Rank | float:
        """Return the merge rank for ``pair`` or ``default_rank`` if it cannot merge."""
        return self._ranks.get(pair, default_rank)

    @property
    def base_vocab(self) -> BaseVocabulary:
        return self._base_vocab

    @property
    def vocab(self) -> Vocabulary:
        return self._vocab

    @property
    def ranks(self) -> RankTable:
        return self._ranks

    @property
    def vocab_size(self) -> int:
        return len(self._vocab)

    @property
    def n_merges(self) -> int:
        return len(self._ranks)


# Table validation
# ===================================================================================


def _check_base_vocab(
    base_vocab: Mapping[int, Symbol], resource_path: str | None = None
) -> dict[int, Symbol]:
    """Copy ``base_vocab`` after checking it covers exactly the bytes 0-255."""
    if len(base_vocab) != BASE_VOCAB_SIZE:
        raise ResourceLoadError(
            f"base vocabulary must hold exactly {BASE_VOCAB_SIZE} entries, "
            f"got {len(base_vocab)}",
            resource_path=resource_path,
        )
    if set(base_vocab) != set(range(BASE_VOCAB_SIZE)):
        raise ResourceLoadError(
            "base vocabulary keys must cover byte values 0-255",
            resource_path=resource_path,
        )
    for byte, symbol in base_vocab.items():
        if not isinstance(symbol, str) or not symbol:
            raise ResourceLoadError(
                f"invalid base symbol for byte {byte}: {symbol!r}",
                resource_path=resource_path,
            )
    return dict(base_vocab)


def _check_vocab(
    vocab: Mapping[Symbol, TokenId], resource_path: str | None = None
) -> dict[Symbol, TokenId]:
    """Copy ``vocab`` after checking every id is a non-negative integer."""
    for symbol, tok in vocab.items():
        # bool is an int subclass but never a valid id
        if isinstance(tok, bool) or not isinstance(tok, int) or tok < 0:
            raise ResourceLoadError(
                f"invalid token id for {symbol!r}: {tok!r}",
                resource_path=resource_path,
            )
    return dict(vocab)


def _check_ranks(ranks: Mapping[SymbolPair, Rank]) -> dict[SymbolPair, Rank]:
    """
    Copy ``ranks`` after checking keys are string pairs and ranks unique and
    non-negative.

    Two pairs sharing a rank would leave the merge order undefined.
    """
    seen: dict[Rank, SymbolPair] = {}
    for pair, rank in ranks.items():
        if (
            not isinstance(pair, tuple)
            or len(pair) != 2
            or not all(isinstance(sym, str) for sym in pair)
        ):
            raise ResourceLoadError(f"merge rule must be a pair of strings: {pair!r}")
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 0:
            raise ResourceLoadError(f"invalid rank for {pair!r}: {rank!r}")
        if rank in seen:
            raise ResourceLoadError(
                f"rank {rank} shared by merge rules {seen[rank]!r} and {pair!r}"
            )
        seen[rank] = pair
    return dict(ranks)


# Resource file parsing
# ===================================================================================


def _read_json(path: Path, what: str) -> object:
    """Read a JSON document, wrapping every failure in ResourceLoadError."""
    if not path.is_file():
        raise ResourceLoadError(f"{what} file does not exist", resource_path=str(path))
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
    except (OSError, ValueError) as e:
        raise ResourceLoadError(
            f"failed to read {what}: {e}", resource_path=str(path)
        ) from e


def load_base_vocabulary(path: str | Path) -> dict[int, Symbol]:
    """
    Parse a base vocabulary JSON file mapping ``"0"``..``"255"`` to symbols.

    :raises ResourceLoadError: If the file is missing, not a JSON object, or
                               does not cover exactly 256 byte values.
    """
    path = Path(path)
    data = _read_json(path, "base vocabulary")
    if not isinstance(data, dict):
        raise ResourceLoadError(
            "base vocabulary must be a JSON object", resource_path=str(path)
        )

    base_vocab: dict[int, Symbol] = {}
    for key, symbol in data.items():
        try:
            byte = int(key)
        except ValueError:
            raise ResourceLoadError(
                f"base vocabulary key is not a number: {key!r}",
                resource_path=str(path),
            ) from None
        base_vocab[byte] = symbol

    log.debug(f"loaded {len(base_vocab)} base vocabulary entries from {path}")
    return _check_base_vocab(base_vocab, resource_path=str(path))


def load_vocabulary(path: str | Path) -> dict[Symbol, TokenId]:
    """
    Parse a vocabulary JSON file mapping symbols to token ids.

    :raises ResourceLoadError: If the file is missing, not a JSON object, or
                               holds an id that is not a non-negative integer.
    """
    path = Path(path)
    data = _read_json(path, "vocabulary")
    if not isinstance(data, dict):
        raise ResourceLoadError(
            "vocabulary must be a JSON object", resource_path=str(path)
        )

    log.debug(f"loaded {len(data)} vocabulary entries from {path}")
    return _check_vocab(data, resource_path=str(path))


def _split_pair(line: str) -> SymbolPair | None:
    """Split a merge line on a single space; ``None`` unless it yields two symbols."""
    parts = line.split(" ")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def load_merges(path: str | Path) -> dict[SymbolPair, Rank]:
    """
    Parse a merges file into a pair -> rank table.

    Each line holds one pair of symbols separated by a single space. The rank
    of a pair is its zero-based line index. The first line is treated as a
    header and skipped when it does not split into exactly two symbols
    (e.g. ``#version: 0.2 ...``). Trailing blank lines are ignored.

    :raises ResourceLoadError: If the file is missing, unreadable, holds no
                               merge rules, a malformed line or a duplicate pair.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceLoadError("merges file does not exist", resource_path=str(path))
    try:
        # read_text folds "\r\n" and "\r" into "\n"; str.splitlines would also
        # break on form feeds and unicode line separators inside symbols
        lines = path.read_text(encoding="utf-8").split("\n")
    except (OSError, ValueError) as e:
        raise ResourceLoadError(
            f"failed to read merges: {e}", resource_path=str(path)
        ) from e

    while lines and not lines[-1]:
        lines.pop()

    # line numbers reported in errors are 1-based file positions
    offset = 1
    if lines and _split_pair(lines[0]) is None:
        log.debug(f"skipping merges header: {lines[0]!r}")
        lines = lines[1:]
        offset += 1

    if not lines:
        raise ResourceLoadError("merges file holds no merge rules", resource_path=str(path))

    ranks: dict[SymbolPair, Rank] = {}
    for rank, line in enumerate(lines):
        pair = _split_pair(line)
        if pair is None:
            raise ResourceLoadError(
                f"invalid merge format at line {rank + offset}: {line!r}",
                resource_path=str(path),
            )
        if pair in ranks:
            raise ResourceLoadError(
                f"duplicate merge rule at line {rank + offset}: {line!r}",
                resource_path=str(path),
            )
        ranks[pair] = rank

    log.debug(f"loaded {len(ranks)} merge rules from {path}")
    return ranks
