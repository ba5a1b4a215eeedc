"""Background arq workers."""
