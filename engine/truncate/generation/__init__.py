"""Procedural board generation."""

from .generator import BoardParams, BoardGenerationResult, generate_board
from .noise import value_noise
