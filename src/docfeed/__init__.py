"""docfeed: gitignore-aware source discovery and cached diagram rendering for doc generators."""
