"""NPC player: minimax search and static evaluation."""

from .search import Arborist, Caches, best_move
from .scoring import BoardScore, NPCParams
