"""Service layer: model clients, vector index, session store and orchestration."""
