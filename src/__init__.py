"""
MedCite - Evidence-Grounded Medical Question Answering

Answers natural-language medical questions with cited PubMed literature.

Features:
- Hybrid scope classification (keyword fast path + LLM fallback)
- LLM query rewriting for vector search
- Two-phase PubMed enrichment funnel (citations first, full metadata for top K)
- Citation-aware re-ranking of retrieved literature
- Cited, disclaimed answer synthesis
"""

__version__ = "0.1.0"
__author__ = "MedCite Team"
