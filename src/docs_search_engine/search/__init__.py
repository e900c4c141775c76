"""
In-memory search package.

- analyzers: Tokenizer/filter pipeline shared by documents and queries
- fuzzy: Edit-distance tolerance for typo matching
- ranking: Field-weighted TF-IDF scoring, recency boost, explanations
- inverted_index: Term postings and document registry
- snippet: Result excerpts with optional highlighting
"""

from docs_search_engine.search.analyzers import get_analyzer, normalize, query_terms
from docs_search_engine.search.inverted_index import IndexedDocument, InvertedIndex, ScoredDocument, build_index
from docs_search_engine.search.ranking import FieldWeights, RankingEngine, calculate_idf
from docs_search_engine.search.snippet import build_snippet


__all__ = [
    "FieldWeights",
    "IndexedDocument",
    "InvertedIndex",
    "RankingEngine",
    "ScoredDocument",
    "build_index",
    "build_snippet",
    "calculate_idf",
    "get_analyzer",
    "normalize",
    "query_terms",
]
