"""Adapters for the outside world: subprocesses and AWS clients."""
