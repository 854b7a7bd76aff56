"""Shared fixtures: a tiny RoBERTa-style vocabulary written to disk and held in memory."""

import json

import pytest

import robertok as rtok

# Vocabulary and merges adapted from the Hugging Face RoBERTa tokenizer tests:
# https://github.com/huggingface/transformers/blob/v4.20.1/tests/models/roberta/test_tokenization_roberta.py
VOCAB = {
    "<s>": 0,
    "<pad>": 1,
    "</s>": 2,
    "<unk>": 3,
    "l": 4,
    "o": 5,
    "w": 6,
    "e": 7,
    "r": 8,
    "s": 9,
    "t": 10,
    "i": 11,
    "d": 12,
    "n": 13,
    "Ġl": 14,
    "Ġn": 15,
    "Ġlo": 16,
    "Ġlow": 17,
    "er": 19,
    "Ġlowest": 20,
    "Ġnewer": 21,
    "Ġwider": 22,
    "Ġ": 114,
}

MERGES_HEADER = "#version: 0.2 - Trained by `huggingface/tokenizers`"
MERGES = ["Ġ l", "Ġl o", "Ġlo w", "e r"]

RANKS = {
    ("Ġ", "l"): 0,
    ("Ġl", "o"): 1,
    ("Ġlo", "w"): 2,
    ("e", "r"): 3,
}


def write_resources(
    directory,
    *,
    base_vocab=None,
    vocab=None,
    merges_lines=None,
):
    """Write the three resource files into ``directory`` and return it."""
    if base_vocab is None:
        base_vocab = rtok.bytes_to_unicode()
    if vocab is None:
        vocab = VOCAB
    if merges_lines is None:
        merges_lines = [MERGES_HEADER, *MERGES]

    (directory / "base_vocabulary.json").write_text(
        json.dumps({str(b): sym for b, sym in base_vocab.items()}), encoding="utf-8"
    )
    (directory / "vocabulary.json").write_text(json.dumps(vocab), encoding="utf-8")
    (directory / "merges.txt").write_text(
        "\n".join(merges_lines) + "\n", encoding="utf-8"
    )
    return directory


@pytest.fixture
def resource_dir(tmp_path):
    """Return a directory holding valid resource files."""
    return write_resources(tmp_path)


@pytest.fixture
def resources():
    """Return in-memory resources equal to the on-disk fixture."""
    return rtok.TokenizerResources(rtok.bytes_to_unicode(), VOCAB, RANKS)


@pytest.fixture
def tokenizer(resources):
    """Return a tokenizer with default sentinel ids."""
    return rtok.RobertaTokenizer(resources)
