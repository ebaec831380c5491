"""Shared test setup — force test-safe settings before anything imports Settings()."""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["EMBEDQ_EMBEDDING_MODEL"] = "local"
os.environ["EMBEDQ_EMBEDDING_DIMENSIONS"] = "8"
os.environ["EMBEDQ_OPENAI_API_KEY"] = ""
os.environ.pop("OPENAI_API_KEY", None)
os.environ["EMBEDQ_EMBEDDING_BATCH_SIZE"] = "20"
os.environ["EMBEDQ_MAX_BATCH_SIZE_LIMIT"] = "100"
