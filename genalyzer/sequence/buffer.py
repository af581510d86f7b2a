"""
Compact, mutable storage for a single DNA sequence.

`SequenceBuffer` keeps the bases of one gene region in a ``bytearray`` so that
single-base edits (replace, insert, remove) do not rebuild a Python string for
every change. Raw accessors raise ``IndexError`` for out-of-range positions;
bounds-tolerant editing lives one level up in `GeneRegion`.
"""

from typing import Optional


class SequenceBuffer:
    """Editable buffer of sequence characters."""

    __slots__ = ("_bases",)

    def __init__(self, sequence: Optional[str] = None):
        self._bases = bytearray(sequence.encode("ascii")) if sequence else bytearray()

    def __len__(self) -> int:
        return len(self._bases)

    def __str__(self) -> str:
        return self._bases.decode("ascii")

    def __repr__(self) -> str:
        return f"SequenceBuffer({str(self)!r})"

    def _check_index(self, site: int, upper: int) -> None:
        if site < 0 or site >= upper:
            raise IndexError(f"Position {site} is out of range [0, {upper}).")

    def set_base_at(self, site: int, base: str) -> None:
        self._check_index(site, len(self._bases))
        self._bases[site] = ord(base)

    def insert_base(self, site: int, base: str) -> None:
        """Insert an upper-cased base before ``site``; ``site == len`` appends."""
        self._check_index(site, len(self._bases) + 1)
        self._bases.insert(site, ord(base.upper()))

    def remove_base(self, site: int) -> None:
        self._check_index(site, len(self._bases))
        del self._bases[site]

    def uppercase(self) -> "SequenceBuffer":
        self._bases = bytearray(self._bases.upper())
        return self

    def remove_bases(self, start: int, count: int) -> int:
        """
        Remove up to ``count`` bases starting at ``start``.

        Returns the number of bases actually removed, which is smaller than
        ``count`` when the run reaches the end of the buffer.
        """
        if count < 1:
            return 0
        self._check_index(start, len(self._bases))
        count = min(count, len(self._bases) - start)
        del self._bases[start : start + count]
        return count
