"""Retrieval-answer layer: embed the question, retrieve, score, then answer or refuse."""
