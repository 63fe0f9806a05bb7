"""Claude integration: the analyst tool-use loop and its tool registry."""
