# =============================================================================
# Services Package — Business Logic
# =============================================================================
#   - guardrails.py: input/output/document validation and sanitisation
#   - extraction.py: JSON extraction from generated text
#   - llm.py: multi-provider generation client (Anthropic, OpenAI-compatible)
#   - embedder.py: embedding generation (OpenAI-compatible)
#   - vectorstore.py: ChromaDB vector store with metadata filtering
#   - retrieval.py: retrieval client used by the agents
#   - parser.py / chunker.py: upload text extraction and token chunking
#   - admission.py: document admission (validate, classify, index)
#   - evals.py: substring-match evaluation scenarios
# =============================================================================
