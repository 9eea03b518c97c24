"""Prompts for grounded answer generation."""

# Returned verbatim on every refusal and given to the model as its own
# fallback phrase; callers may match on it.
REFUSAL_ANSWER = "I don't know the answer to your question."

# ---------------------------------------------------------------------------
# Answer Synthesis: answer only from the retrieved context
# ---------------------------------------------------------------------------

ANSWER_SYNTHESIS_SYSTEM = (
    "Answer ONLY using the provided context. If the context does not contain "
    f"the answer, reply exactly: {REFUSAL_ANSWER}"
)

ANSWER_SYNTHESIS_CONTEXT = """\
{system}

Context:
{context}"""


def build_system_prompt(context: str) -> str:
    """System message carrying the grounding rule followed by the literal context."""
    return ANSWER_SYNTHESIS_CONTEXT.format(system=ANSWER_SYNTHESIS_SYSTEM, context=context)
