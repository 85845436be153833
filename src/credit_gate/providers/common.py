from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from credit_gate.errors import UpstreamProviderError


@contextmanager
def upstream_errors(source: str, exception_types: type[Exception] | tuple[type[Exception], ...]) -> Iterator[None]:
    """Re-raise SDK failures as UpstreamProviderError tagged with *source*."""
    try:
        yield
    except exception_types as ex:
        logger.warning(f"{source} call failed: {type(ex).__name__}: {ex}")
        raise UpstreamProviderError(source, str(ex) or type(ex).__name__) from ex
