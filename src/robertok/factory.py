"""Factory functions for creating tokenizers from resource directories."""

import logging
import os
from pathlib import Path
from typing import Final

from .errors import ResourceLoadError
from .resources import TokenizerResources
from .tokenizer import RobertaTokenizer, SpecialTokens

RESOURCES_DIR_ENV: Final[str] = "ROBERTOK_RESOURCES_DIR"

log = logging.getLogger(__name__)


class ResourcesFactory:
    """
    Deferred constructor for :class:`TokenizerResources`.

    Only the directory is checked up front; the files are parsed when
    :meth:`create` is called, which lets a tokenizer postpone loading until
    its first ``tokenize`` call.

    :param base_dir: Directory holding the resource files.
    :raises ResourceLoadError: If ``base_dir`` does not exist.
    """

    def __init__(self, base_dir: str | Path) -> None:
        if base_dir is None:
            raise TypeError("base_dir must not be None")
        path = Path(base_dir)
        if not path.is_dir():
            raise ResourceLoadError(
                "resource directory does not exist", resource_path=str(path)
            )
        self._base_dir = path

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def create(self) -> TokenizerResources:
        """Load a fresh :class:`TokenizerResources` from the directory."""
        return TokenizerResources.from_directory(self._base_dir)


def _resolve_base_dir(base_dir: str | Path | None) -> Path:
    """Return ``base_dir``, falling back to the ``ROBERTOK_RESOURCES_DIR`` env var."""
    if base_dir is not None:
        return Path(base_dir)

    env_dir = os.environ.get(RESOURCES_DIR_ENV, "").strip()
    if not env_dir:
        raise ResourceLoadError(
            f"no resource directory given and {RESOURCES_DIR_ENV} is not set"
        )
    log.debug(f"using resource directory from {RESOURCES_DIR_ENV}: {env_dir}")
    return Path(env_dir)


def from_pretrained(
    base_dir: str | Path | None = None,
    *,
    lazy: bool = False,
    special_tokens: SpecialTokens | None = None,
    pattern: str | None = None,
) -> RobertaTokenizer:
    """
    Build a RoBERTa tokenizer from a directory of resource files.

    :param base_dir: Directory containing ``base_vocabulary.json``,
                     ``vocabulary.json`` and ``merges.txt``. Defaults to the
                     ``ROBERTOK_RESOURCES_DIR`` environment variable.
    :param lazy: Defer parsing the files until the first ``tokenize`` call.
    :param special_tokens: Sentinel ids; defaults to ``SpecialTokens()``.
    :param pattern: Custom pre-tokenization regex; defaults to the RoBERTa pattern.
    :return: Configured tokenizer.
    :raises ResourceLoadError: If no directory is available, or (when not lazy)
                               any resource file is missing or malformed.

    .. code-block:: python

        tokenizer = from_pretrained("path/to/roberta-base")
        ids = tokenizer.tokenize("Hello world")
    """
    factory = ResourcesFactory(_resolve_base_dir(base_dir))
    resources = factory if lazy else factory.create()
    return RobertaTokenizer(resources, special_tokens=special_tokens, pattern=pattern)
