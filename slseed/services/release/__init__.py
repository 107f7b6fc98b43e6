"""Versioned release orchestration: plan, upload, cut over, prune."""
