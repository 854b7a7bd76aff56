"""
Core Byte Pair Encoding (BPE) operations.

Merging is greedy: on every pass the single adjacent pair with the lowest
rank in the merge table is merged everywhere it occurs, until no pair in the
word has a rank or only one symbol is left.
"""

import math
from typing import TYPE_CHECKING

from .types import Symbol, SymbolPair

if TYPE_CHECKING:
    from .resources import TokenizerResources


def get_pairs(symbols: list[Symbol]) -> set[SymbolPair]:
    """
    Collect the distinct adjacent symbol pairs of a symbol sequence.

    Args:
        symbols (list[Symbol]): Symbol sequence to analyze.

    Returns:
        set[SymbolPair]: Every consecutive ``(left, right)`` pair, once.
    """
    return set(zip(symbols, symbols[1:]))


def merge_pair(symbols: list[Symbol], target: SymbolPair) -> list[Symbol]:
    """
    Merge all non-overlapping occurrences of a target pair into one symbol.

    The scan runs left to right and skips past each merge, so a symbol created
    during this pass is never merged again within the same pass:
    ``merge_pair(["a", "a", "a"], ("a", "a")) == ["aa", "a"]``.

    Args:
        symbols (list[Symbol]): Original symbol sequence.
        target (SymbolPair): The consecutive pair of symbols to merge.

    Returns:
        list[Symbol]: New sequence with every target pair concatenated.
    """
    left, right = target
    merged = left + right
    newsyms: list[Symbol] = []

    i = 0
    n = len(symbols)
    while i < n:
        if i < n - 1 and symbols[i] == left and symbols[i + 1] == right:
            newsyms.append(merged)
            i += 2
        else:
            newsyms.append(symbols[i])
            i += 1

    return newsyms


class BytePairEncoder:
    """
    Greedy pair-merge encoder for a single pre-tokenized chunk.

    The encoder keeps no state between calls; one instance can serve any
    number of tokenizers and threads.
    """

    def encode(self, word: str, resources: "TokenizerResources") -> list[Symbol]:
        """
        Split a byte-remapped chunk into its final BPE symbols.

        :param word: Chunk whose characters are base symbols.
        :param resources: Tables providing the merge ranks.
        :return: Final symbol sequence; empty for an empty word.
        :raises TypeError: If ``word`` is not a string or ``resources`` is missing.
        """
        if not isinstance(word, str):
            raise TypeError(f"word must be a str, got {type(word).__name__}")
        if resources is None:
            raise TypeError("resources must not be None")

        symbols: list[Symbol] = list(word)
        if len(symbols) < 2:
            return symbols

        pairs = get_pairs(symbols)
        while True:
            # TokenizerResources rejects shared ranks, so the minimum is unambiguous
            best = min(pairs, key=lambda pair: resources.rank_of(pair, math.inf))
            if resources.rank_of(best, math.inf) == math.inf:
                break

            symbols = merge_pair(symbols, best)
            if len(symbols) == 1:
                break
            pairs = get_pairs(symbols)

        return symbols


_ENCODER = BytePairEncoder()


def bpe_encode(word: str, resources: "TokenizerResources") -> list[Symbol]:
    """Encode ``word`` with a shared :class:`BytePairEncoder`."""
    return _ENCODER.encode(word, resources)
