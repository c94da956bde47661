"""
Mise - Hybrid recipe retrieval and meal-plan assembly.

Subsystems:
- Embeddings: recipe and preference text -> dense vectors
- Retrieval: vector search, tag/random fallbacks, compliance, diversity
- Generation: LLM fallback when the corpus cannot fill a plan
- Planner: orchestrates the pipeline and lays recipes onto a calendar
"""

__version__ = "1.0.0"
