"""Vector store module for the grounded question-answering pipeline.

Provides sentence-aware chunking, embedding generation against an
OpenAI-compatible server, and ChromaDB storage of chunk embeddings.
"""
