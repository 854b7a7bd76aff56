"""
Core types for tokenization.
"""

from collections.abc import Mapping

type Symbol = str
type SymbolPair = tuple[Symbol, Symbol]
type TokenId = int
type Rank = int
type BaseVocabulary = Mapping[int, Symbol]
type Vocabulary = Mapping[Symbol, TokenId]
type RankTable = Mapping[SymbolPair, Rank]
