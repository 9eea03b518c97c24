"""RAG Query Engine: decides whether to answer a question or refuse.

Per question:
  1. Embed the question and retrieve the top-k chunks (Retriever)
  2. No chunks → refuse with score 0
  3. Score the nearest chunk; below the similarity threshold → refuse,
     reporting the real score
  4. Otherwise join every retrieved chunk into the context and ask the chat
     model to answer from that context alone

Only the nearest chunk drives the threshold, so one strong match among weak
ones is enough to answer. Refusals are ordinary results; embedding, store
and chat failures propagate to the caller.
"""

import logging

from rag.llm import ChatClient
from rag.prompts import REFUSAL_ANSWER, build_system_prompt
from rag.retriever import DEFAULT_TOP_K, Retriever, RetrievedChunk
from schemas.answer import AskResult

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.3
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.2


def build_context(chunks: list[RetrievedChunk]) -> str:
    """Join chunk texts in ranked order, separated by a blank line."""
    return "\n\n".join(chunk.text for chunk in chunks).strip()


class QueryEngine:
    """Orchestrates retrieval, scoring and grounded answer generation."""

    def __init__(
        self,
        retriever: Retriever,
        llm: ChatClient,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        top_k: int = DEFAULT_TOP_K,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.retriever = retriever
        self.llm = llm
        self.similarity_threshold = similarity_threshold
        self.top_k = top_k
        self.max_tokens = max_tokens
        self.temperature = temperature

    def ask(self, question: str) -> AskResult:
        question = question.strip()
        chunks = self.retriever.retrieve(question, self.top_k)

        if not chunks:
            logger.info("Refusing: store returned no chunks")
            return AskResult(answer=REFUSAL_ANSWER, context_used=None, score=0.0)

        best = min(chunks, key=lambda c: c.distance)
        score = best.score
        if score < self.similarity_threshold:
            logger.info(
                "Refusing: best score %.4f (distance %.4f) below threshold %.2f",
                score, best.distance, self.similarity_threshold,
            )
            return AskResult(answer=REFUSAL_ANSWER, context_used=None, score=score)

        context = build_context(chunks)
        logger.info(
            "Answering from %d chunks (best score %.4f, %d context chars)",
            len(chunks), score, len(context),
        )
        answer = self._generate(question, context)
        return AskResult(answer=answer, context_used=context, score=score)

    def _generate(self, question: str, context: str) -> str:
        content = self.llm.chat(
            system=build_system_prompt(context),
            user=question,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not isinstance(content, str) or not content.strip():
            logger.warning("Chat model returned no usable text; falling back to refusal")
            return REFUSAL_ANSWER
        return content.strip()
