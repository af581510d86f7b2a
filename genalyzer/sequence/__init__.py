"""Mutable DNA sequence storage."""

from genalyzer.sequence.buffer import SequenceBuffer

__all__ = ["SequenceBuffer"]
