"""Unit tests for RobertaTokenizer tokenize, sentinels, edge cases and batching."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

import robertok as rtok
from robertok.tokenizer import CLS_TOKEN, PAD_TOKEN, SEP_TOKEN, UNK_TOKEN


# Fixtures
# ---------------------------------------------------------------------------


class CountingFactory:
    """Resources factory that records how often it builds resources."""

    def __init__(self, resources, delay=0.0):
        self.resources = resources
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def create(self):
        with self._lock:
            self.calls += 1
        time.sleep(self.delay)
        return self.resources


@pytest.fixture
def custom_tokenizer(resources):
    """Return a tokenizer with non-default sentinel ids."""
    special = rtok.SpecialTokens(cls=100, sep=101, unk=102)
    return rtok.RobertaTokenizer(resources, special_tokens=special)


# Tokenize
# ---------------------------------------------------------------------------


def test_tokenize_correctly(tokenizer):
    """A sentence fully covered by the vocabulary maps to the expected ids."""
    expected = [
        CLS_TOKEN,
        4, 5, 6, 19,  # lower
        114, 13, 7, 6, 19,  # newer
        SEP_TOKEN,
    ]
    assert tokenizer.tokenize("lower newer") == expected


def test_adding_beginning_and_end_tokens(tokenizer):
    assert tokenizer.tokenize("er") == [CLS_TOKEN, 19, SEP_TOKEN]


def test_empty_sentence(tokenizer):
    assert tokenizer.tokenize("") == [CLS_TOKEN, SEP_TOKEN]


def test_leading_space_word_merges(tokenizer):
    """A word keeps its leading space, which takes part in merges."""
    assert tokenizer.tokenize("er low") == [CLS_TOKEN, 19, 17, SEP_TOKEN]


def test_unknown_symbols_fall_back(tokenizer):
    """Symbols missing from the vocabulary map to the unknown id."""
    assert tokenizer.tokenize("zq") == [CLS_TOKEN, UNK_TOKEN, UNK_TOKEN, SEP_TOKEN]


def test_multibyte_characters(tokenizer):
    """Each UTF-8 byte of a multi-byte character becomes its own base symbol."""
    tokens = tokenizer.tokenize("é")
    assert tokens == [CLS_TOKEN, UNK_TOKEN, UNK_TOKEN, SEP_TOKEN]

    tokens = tokenizer.tokenize("👋")
    assert len(tokens) == 2 + len("👋".encode("utf-8"))


def test_long_sentence(tokenizer):
    """24 repetitions of "er" produce a run of the "er" id."""
    tokens = tokenizer.tokenize("er" * 24)
    assert tokens[0] == CLS_TOKEN
    assert tokens[-1] == SEP_TOKEN
    assert tokens[1:-1] == [19] * 24


def test_short_sentence_has_no_padding(tokenizer):
    """The tokenizer never pads; nothing follows the separator."""
    tokens = tokenizer.tokenize("stdin er")
    assert PAD_TOKEN not in tokens
    assert tokens.index(SEP_TOKEN) == len(tokens) - 1
    assert len(tokens) > 3


@pytest.mark.parametrize(
    "sentence",
    [
        "",
        " ",
        "   \n\t  ",
        "I'm bored now, so I'll just copy and paste.",
        "https://www.google.com/search?as_q=you+have+to+write+a+really+long+search",
        "café naïve 日本語 🎉",
        "123 4567",
        "\ud800",
    ],
)
def test_sentinel_wrapping(tokenizer, sentence):
    """Every sentence, however unusual, is wrapped in CLS ... SEP."""
    tokens = tokenizer.tokenize(sentence)
    assert tokens[0] == CLS_TOKEN
    assert tokens[-1] == SEP_TOKEN
    assert all(isinstance(tok, int) and tok >= 0 for tok in tokens)


def test_custom_special_tokens(custom_tokenizer):
    assert custom_tokenizer.tokenize("") == [100, 101]
    # " z" becomes the known "Ġ" plus an unknown "z"
    assert custom_tokenizer.tokenize("er z") == [100, 19, 114, 102, 101]
    assert custom_tokenizer.cls_token == 100
    assert custom_tokenizer.sep_token == 101
    assert custom_tokenizer.unk_token == 102


def test_default_special_tokens(tokenizer):
    assert tokenizer.cls_token == 0
    assert tokenizer.sep_token == 2
    assert tokenizer.unk_token == 3
    assert tokenizer.pad_token == 1


def test_invalid_special_token():
    with pytest.raises(ValueError):
        rtok.SpecialTokens(unk=-1)


def test_none_sentence_raises(tokenizer):
    with pytest.raises(TypeError):
        tokenizer.tokenize(None)


def test_none_resources_raises():
    with pytest.raises(TypeError):
        rtok.RobertaTokenizer(None)


def test_invalid_pattern_raises(resources):
    with pytest.raises(rtok.PatternError) as excinfo:
        rtok.RobertaTokenizer(resources, pattern="(unclosed")
    assert excinfo.value.pattern == "(unclosed"
    assert "(pattern: '(unclosed')" in str(excinfo.value)


# Pre-tokenization
# ---------------------------------------------------------------------------


def test_pre_tokenize_chunks(tokenizer):
    chunks = tokenizer.pre_tokenize("I'll pay 42 dollars!!  ok ")
    assert chunks == ["I", "'ll", " pay", " 42", " dollars", "!!", " ", " ok", " "]


def test_pre_tokenize_covers_input(tokenizer):
    """Chunks cover the whole sentence without gaps or overlaps."""
    sentence = "Hello,   world!\n\nIt's  2024 -- done."
    assert "".join(tokenizer.pre_tokenize(sentence)) == sentence


def test_pre_tokenize_no_space_run(tokenizer):
    assert tokenizer.pre_tokenize("erererer") == ["erererer"]


def test_pre_tokenize_unicode_whitespace(tokenizer):
    """Non-ASCII whitespace such as U+3000 splits like ordinary whitespace."""
    assert tokenizer.pre_tokenize("a\u3000\u3000b") == ["a", "\u3000", "\u3000", "b"]


# Lazy resources
# ---------------------------------------------------------------------------


def test_lazy_factory_builds_on_first_use(resources):
    factory = CountingFactory(resources)
    tok = rtok.RobertaTokenizer(factory)
    assert factory.calls == 0

    assert tok.tokenize("er") == [CLS_TOKEN, 19, SEP_TOKEN]
    tok.tokenize("lower")
    assert factory.calls == 1


def test_lazy_factory_built_once_under_concurrency(resources):
    factory = CountingFactory(resources, delay=0.05)
    tok = rtok.RobertaTokenizer(factory)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(tok.tokenize, ["lower newer"] * 16))

    assert factory.calls == 1
    assert all(r == results[0] for r in results)


# Batch tokenize
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("num_workers", [None, 0, 1, 4])
def test_tokenize_batch_matches_single(tokenizer, num_workers):
    sentences = ["lower newer", "", "er" * 5, "stdin er", "é low"] * 3
    expected = [tokenizer.tokenize(s) for s in sentences]
    assert tokenizer.tokenize_batch(sentences, num_workers=num_workers) == expected


def test_tokenize_batch_empty(tokenizer):
    assert tokenizer.tokenize_batch([]) == []
